"""Build utilities for webrtcbuilds.

This module provides utility functions for build output like printing
library size information.
"""

from pathlib import Path
from typing import Optional


def format_size(num_bytes: int) -> str:
    """Format a byte count the way `du -h` does (1024 based, one decimal)."""
    size = float(num_bytes)
    for unit in ("B", "K", "M", "G"):
        if size < 1024 or unit == "G":
            if unit == "B":
                return f"{int(size)}{unit}"
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}G"


class SizeInfoPrinter:
    """Utility class for printing library size information."""

    @staticmethod
    def print_size(label: str, path: Path, num_bytes: Optional[int] = None) -> None:
        """Print '<label>: <size>\t<path>'."""
        if num_bytes is None:
            num_bytes = path.stat().st_size
        print(f"{label}: {format_size(num_bytes)}\t{path}")

    @staticmethod
    def print_strip_summary(before: int, after: int) -> None:
        if before <= 0:
            return
        saved = before - after
        print(f"Stripped {format_size(saved)} ({saved / before * 100:.1f}%)")
