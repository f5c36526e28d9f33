"""Segment extraction and concurrent segment downloads."""

from .segment_downloader import PoolState, SegmentDownloader, ShutdownSignal
from .segment_extractor import SegmentExtractor, iter_segment_references

__all__ = ["PoolState", "SegmentDownloader", "SegmentExtractor", "ShutdownSignal", "iter_segment_references"]
