"""Models describing the outcome of a segment download run."""

from __future__ import annotations

from typing import Iterable, List

from pydantic import BaseModel, Field


class DownloadReport(BaseModel):
    """File names fetched and skipped during one run."""

    downloaded: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.downloaded) + len(self.skipped)

    @classmethod
    def combine(cls, reports: Iterable["DownloadReport"]) -> "DownloadReport":
        merged = cls()
        for report in reports:
            merged.downloaded.extend(report.downloaded)
            merged.skipped.extend(report.skipped)
        return merged
