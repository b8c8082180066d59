"""Object Combiner.

Folds every object of a finished WebRTC build into one static library
(``libwebrtc_full.a`` / ``libwebrtc_full.lib``), so consumers link a single
archive instead of dozens of per-target ones.

Release builds on POSIX hosts are archived to ``<name>_unstripped.a`` first,
stripped of debug symbols into ``<name>.a``, and the intermediate is deleted.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..command_runner import CommandRunner
from .archive_creator import ArchiveCreator, ArchiveError
from .build_utils import SizeInfoPrinter
from .object_collector import ExclusionPolicy, ObjectCollectionError, ObjectCollector
from .stripper import StripError, SymbolStripper

logger = logging.getLogger(__name__)

LIBRARY_NAME = "libwebrtc_full"


class CombineError(Exception):
    """Raised when the combined library cannot be produced."""
    pass


@dataclass
class CombinedLibrary:
    """A combined library and what went into it."""

    path: Path
    object_count: int
    size: int
    unstripped_size: Optional[int] = None

    @property
    def stripped(self) -> bool:
        return self.unstripped_size is not None


class ObjectCombiner:
    """Combines the objects of an output directory into one library."""

    def __init__(
        self,
        runner: CommandRunner,
        windows: bool = False,
        lib_path: Optional[str] = None,
        strip_path: str = "strip",
        library_name: str = LIBRARY_NAME,
    ):
        """Initialize object combiner.

        Args:
            runner: Command runner
            windows: Windows host (lib.exe, .lib output, no stripping)
            lib_path: Path to lib.exe
            strip_path: Strip tool for release builds
            library_name: Library name without extension
        """
        self.runner = runner
        self.windows = windows
        self.library_name = library_name
        self.archiver = ArchiveCreator(runner, windows=windows, lib_path=lib_path)
        self.stripper = SymbolStripper(runner, strip_path)

    @property
    def extension(self) -> str:
        return ".lib" if self.windows else ".a"

    def library_path(self, output_dir: Path) -> Path:
        return output_dir / f"{self.library_name}{self.extension}"

    def collect_objects(self, output_dir: Path, policy: ExclusionPolicy) -> List[str]:
        """Objects that go into the library, relative to ``output_dir``.

        Raises:
            CombineError: If the build log is missing or nothing is left
        """
        try:
            objects = ObjectCollector(output_dir).collect(policy)
        except ObjectCollectionError as e:
            raise CombineError(str(e)) from e

        if not objects:
            raise CombineError(
                f"No object files left in {output_dir} after applying exclusions: {policy}"
            )
        return objects

    def combine(self, output_dir: Path, policy: ExclusionPolicy, strip: bool = False) -> CombinedLibrary:
        """Combine the objects of ``output_dir``.

        Args:
            output_dir: ninja output directory of a finished build
            policy: Objects to leave out
            strip: Strip debug symbols (ignored on Windows)

        Returns:
            CombinedLibrary

        Raises:
            CombineError: If collection, archiving or stripping fails
        """
        output_dir = Path(output_dir)
        objects = self.collect_objects(output_dir, policy)

        print(f"Combining library: {self.library_name}")
        print(f"Blacklist objects: {policy}")
        logger.debug("%d objects selected in %s", len(objects), output_dir)

        final_path = self.library_path(output_dir)
        list_path = output_dir / f"{self.library_name}.list"
        strip = strip and not self.windows

        if not strip:
            self._archive(output_dir, final_path, objects, list_path)
            return CombinedLibrary(
                path=final_path,
                object_count=len(objects),
                size=final_path.stat().st_size,
            )

        unstripped_path = output_dir / f"{self.library_name}_unstripped{self.extension}"
        self._archive(output_dir, unstripped_path, objects, list_path)
        try:
            print(f"Stripping {self.library_name} in {output_dir}")
            unstripped_size = unstripped_path.stat().st_size
            SizeInfoPrinter.print_size("Size before strip", unstripped_path, unstripped_size)

            self._strip(unstripped_path, final_path)

            size = final_path.stat().st_size
            SizeInfoPrinter.print_size("Size after strip", final_path, size)
            SizeInfoPrinter.print_strip_summary(unstripped_size, size)
        finally:
            if unstripped_path.exists():
                unstripped_path.unlink()

        return CombinedLibrary(
            path=final_path,
            object_count=len(objects),
            size=size,
            unstripped_size=unstripped_size,
        )

    def _archive(self, output_dir: Path, archive_path: Path, objects: List[str], list_path: Path) -> None:
        try:
            self.archiver.create_archive(output_dir, archive_path, objects, list_path=list_path)
        except ArchiveError as e:
            raise CombineError(str(e)) from e

    def _strip(self, source: Path, final_path: Path) -> None:
        # Strip into a temporary name so a failure keeps the previous library
        temp_path = final_path.with_name(f".{final_path.name}.partial")
        try:
            self.stripper.strip(source, temp_path)
            temp_path.replace(final_path)
        except StripError as e:
            raise CombineError(str(e)) from e
        finally:
            if temp_path.exists():
                temp_path.unlink()
