"""Filesystem helpers for the download directory and partial files."""

from __future__ import annotations

import logging
import os
from pathlib import Path


def ensure_directory(path: str) -> str:
    """Creates a directory (and its parents) if needed."""

    Path(path).mkdir(parents=True, exist_ok=True)
    return path


def remove_partial_file(path: str) -> None:
    """Deletes a file left behind by an interrupted write, if any."""

    try:
        os.remove(path)
        logging.debug("Removed partial file %s", path)
    except FileNotFoundError:
        pass
