"""
Module for per-worker progress logs.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TextIO

from .exceptions import StartupError

logger = logging.getLogger(__name__)

_UNITS = ["", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi"]


def format_bytes(size: float) -> str:
    """Format a byte count using binary units, e.g. ``5.0MiB``.

    Args:
        size: Number of bytes

    Returns:
        Human readable size
    """
    value = float(size)
    for unit in _UNITS:
        if abs(value) < 1024.0:
            return f"{value:3.1f}{unit}B"
        value /= 1024.0
    return f"{value:.1f}YiB"


def rfc3339_now() -> str:
    """Current local time as an RFC3339 timestamp with offset."""
    return datetime.now(timezone.utc).astimezone().isoformat(timespec="seconds")


class WorkerLog:
    """Append-only, human readable log file owned by one worker.

    Every line is ``<RFC3339 timestamp> <message>`` and is mirrored to the
    diagnostic logger.
    """

    def __init__(self, path: Path, name: str):
        """Initialize the worker log.

        Args:
            path: File to append to; parent directories are created
            name: Worker name used to tag diagnostic log records
        """
        self.path = Path(path)
        self.name = name
        self._file: Optional[TextIO] = None

    def open(self) -> "WorkerLog":
        """Open the log file for appending.

        Raises:
            StartupError: If the file cannot be opened
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "a", encoding="utf-8", buffering=1)
        except OSError as e:
            raise StartupError(f"error opening file {self.path}: {e}") from e
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "WorkerLog":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def write(self, message: str) -> None:
        """Append one timestamped line."""
        logger.info(f"[{self.name}] {message}")
        if self._file is None:
            return
        try:
            self._file.write(f"{rfc3339_now()} {message}\n")
        except OSError as e:
            # progress lines carry no control-flow meaning
            logger.error(f"Error writing to {self.path}: {e}")
