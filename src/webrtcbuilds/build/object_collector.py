"""Object Collector.

This module finds the object files of a finished ninja build and filters out
the ones that must not go into the combined library.

Design:
    - The ninja dependency log (.ninja_deps) lists every object the build
      produced; its path records are read the way `strings` would read them
    - A few vendored assembly objects (libvpx intrinsics, libjpeg-turbo SIMD)
      never show up in the log and are found by directory search instead
    - An ExclusionPolicy drops test objects, objects with a main() and the
      external video-capture stubs
    - The result is ordered and de-duplicated, so the same output directory
      always yields the same list
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

logger = logging.getLogger(__name__)

LEDGER_NAME = ".ninja_deps"

# Search roots relative to the output directory
EXTRA_SEARCH_GLOBS: Tuple[str, ...] = (
    "obj/third_party/libvpx/libvpx_*",
    "obj/third_party/libjpeg_turbo/simd_asm",
)

OBJECT_SUFFIXES: Tuple[str, ...] = (".o", ".obj")

# Shortest printable run `strings` reports
MIN_STRING_LENGTH = 4

_PRINTABLE_RUN = re.compile(rb"[\x20-\x7e]{%d,}" % MIN_STRING_LENGTH)
_OBJECT_PREFIX = re.compile(r"^(.*\.(?:obj|o))")

DEFAULT_EXCLUSIONS: Tuple[str, ...] = (
    # gtest objects
    "unittest",
    "examples",
    # objects defining main()
    "main.o",
    # so the internal video capture implementation gets linked
    "video_capture_external.o",
    "device_info_external.o",
    # host toolchain objects of cross builds
    "clang_x64",
)

NON_ANDROID_EXCLUSIONS: Tuple[str, ...] = ("x86_abi_support.o",)


class ObjectCollectionError(Exception):
    """Raised when the objects of a build cannot be determined."""
    pass


@dataclass(frozen=True)
class ExclusionPolicy:
    """Ordered regex fragments; an object matching any one is excluded."""

    patterns: Tuple[str, ...]

    @classmethod
    def for_target(cls, target_os: str, extra: Optional[str] = None) -> "ExclusionPolicy":
        """Default policy for a target OS plus a caller-supplied fragment.

        Args:
            target_os: Target OS
            extra: Additional regex fragment (e.g. from -l)
        """
        patterns = list(DEFAULT_EXCLUSIONS)
        if target_os != "android":
            patterns.extend(NON_ANDROID_EXCLUSIONS)
        if extra:
            patterns.append(extra)
        return cls(tuple(patterns))

    def extend(self, *patterns: str) -> "ExclusionPolicy":
        return ExclusionPolicy(self.patterns + tuple(p for p in patterns if p))

    @property
    def compiled(self) -> List[Pattern[str]]:
        return [re.compile(p) for p in self.patterns]

    def matches(self, path: str) -> bool:
        return any(p.search(path) for p in self.compiled)

    def filter(self, paths: Iterable[str]) -> List[str]:
        compiled = self.compiled
        return [path for path in paths if not any(p.search(path) for p in compiled)]

    def __str__(self) -> str:
        return "|".join(self.patterns)


def extract_ledger_objects(data: bytes) -> List[str]:
    """Extract object paths from ninja dependency log bytes.

    Every printable run is cut after its last object extension, like
    ``strings .ninja_deps | grep -o '.*\\.o'``.

    Returns:
        Object paths in log order, duplicates removed
    """
    seen = set()
    objects = []
    for match in _PRINTABLE_RUN.finditer(data):
        text = match.group().decode("ascii")
        prefix = _OBJECT_PREFIX.match(text)
        if not prefix:
            continue
        path = prefix.group(1)
        if path not in seen:
            seen.add(path)
            objects.append(path)
    return objects


class ObjectCollector:
    """Collects and filters the object files of an output directory."""

    def __init__(self, output_dir: Path, extra_globs: Sequence[str] = EXTRA_SEARCH_GLOBS):
        """Initialize object collector.

        Args:
            output_dir: ninja output directory
            extra_globs: Directories searched for objects missing from the log
        """
        self.output_dir = Path(output_dir)
        self.extra_globs = tuple(extra_globs)

    @property
    def ledger_path(self) -> Path:
        return self.output_dir / LEDGER_NAME

    def ledger_objects(self) -> List[str]:
        """Object paths recorded in the dependency log that exist on disk.

        Raises:
            ObjectCollectionError: If the log is missing
        """
        if not self.ledger_path.is_file():
            raise ObjectCollectionError(
                f"No {LEDGER_NAME} in {self.output_dir}: the build has not run or was cleaned"
            )

        objects = []
        for path in extract_ledger_objects(self.ledger_path.read_bytes()):
            if (self.output_dir / path).is_file():
                objects.append(path)
            else:
                logger.debug("Ignoring %s: not in %s", path, self.output_dir)
        return objects

    def extra_objects(self) -> List[str]:
        """Objects found by directory search, sorted."""
        found = set()
        for pattern in self.extra_globs:
            for root in self.output_dir.glob(pattern):
                if not root.is_dir():
                    continue
                for obj in root.rglob("*"):
                    if obj.is_file() and obj.suffix in OBJECT_SUFFIXES:
                        found.add(obj.relative_to(self.output_dir).as_posix())
        return sorted(found)

    def collect(self, policy: ExclusionPolicy) -> List[str]:
        """Objects to combine: log objects, then extras, minus exclusions.

        Returns:
            Paths relative to the output directory

        Raises:
            ObjectCollectionError: If the dependency log is missing
        """
        objects = self.ledger_objects()
        known = set(objects)
        objects.extend(path for path in self.extra_objects() if path not in known)
        return policy.filter(objects)
