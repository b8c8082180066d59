"""Debug symbol stripping for release libraries.

The strip tool has to understand the target's object format, so it is picked
per target:

1. llvm-strip bundled with the checkout's clang (handles every target)
2. a GNU cross strip for arm/arm64 on Linux hosts, when installed
3. the host's strip
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from ..command_runner import CommandError, CommandRunner

logger = logging.getLogger(__name__)

BUNDLED_LLVM_STRIP = Path("third_party/llvm-build/Release+Asserts/bin/llvm-strip")

LINUX_CROSS_STRIP: Dict[str, str] = {
    "arm": "arm-linux-gnueabihf-strip",
    "arm64": "aarch64-linux-gnu-strip",
}


class StripError(Exception):
    """Raised when stripping fails."""
    pass


class StripToolSelector:
    """Chooses the strip executable for a target."""

    def __init__(self, runner: CommandRunner, src_dir: Optional[Path], host_platform: str):
        self.runner = runner
        self.src_dir = src_dir
        self.host_platform = host_platform

    def select(self, target_cpu: str) -> str:
        if self.src_dir is not None:
            bundled = self.src_dir / BUNDLED_LLVM_STRIP
            if bundled.is_file():
                return str(bundled)

        if self.host_platform == "linux" and target_cpu in LINUX_CROSS_STRIP:
            cross = LINUX_CROSS_STRIP[target_cpu]
            if self.runner.which(cross):
                return cross
            logger.warning("%s not found, falling back to strip", cross)

        return "strip"


class SymbolStripper:
    """Strips debug symbols from a static library."""

    def __init__(self, runner: CommandRunner, strip_path: str = "strip"):
        self.runner = runner
        self.strip_path = strip_path

    def strip(self, source: Path, output: Path) -> Path:
        """Write a copy of ``source`` without debug symbols to ``output``.

        Raises:
            StripError: If strip fails or produces nothing
        """
        try:
            result = self.runner.run(
                [self.strip_path, "-S", str(source), "-o", str(output)],
                capture=True,
            )
        except CommandError as e:
            raise StripError(f"Failed to strip {source.name}: {e}") from e

        if not result.ok:
            raise StripError(f"Failed to strip {source.name}: {result.stderr.strip()}")
        if not output.exists():
            raise StripError(f"strip produced no output for {source.name}")
        return output
