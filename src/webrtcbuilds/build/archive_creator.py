"""Archive Creator.

This module creates the combined static library from a list of object files,
using ``ar`` on POSIX hosts and the Visual C++ librarian (``lib.exe``) on
Windows.

Design:
    - Writes the object list to <name>.list next to the objects
    - Archives into a temporary file and renames it over the target only on
      success, so a failed run never truncates a previous good library
    - Runs ``ar -crs`` in batches (like xargs) to stay under the command
      line length limit; 'r' replaces members, so batching is safe
    - lib.exe reads the list as a response file
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from ..command_runner import CommandError, CommandRunner

logger = logging.getLogger(__name__)


class ArchiveError(Exception):
    """Raised when archive creation operations fail."""
    pass


class ArchiveCreator:
    """Creates static library archives from object files.

    This class handles:
    - Running ar or lib.exe
    - Atomic replacement of the output library
    - Showing size information
    """

    AR_BATCH_SIZE = 500

    def __init__(
        self,
        runner: CommandRunner,
        windows: bool = False,
        ar_path: str = "ar",
        lib_path: Optional[str] = None,
        show_progress: bool = True,
    ):
        """Initialize archive creator.

        Args:
            runner: Command runner
            windows: Use the Visual C++ librarian instead of ar
            ar_path: Archiver for POSIX hosts
            lib_path: Path to lib.exe (defaults to 'lib' on PATH)
            show_progress: Whether to show archive creation progress
        """
        self.runner = runner
        self.windows = windows
        self.ar_path = ar_path
        self.lib_path = lib_path or "lib"
        self.show_progress = show_progress

    @staticmethod
    def write_object_list(list_path: Path, object_files: Sequence[str]) -> Path:
        """Write one object path per line."""
        list_path.write_text("".join(f"{obj}\n" for obj in object_files))
        return list_path

    def create_archive(
        self,
        work_dir: Path,
        archive_path: Path,
        object_files: Sequence[str],
        list_path: Optional[Path] = None,
    ) -> Path:
        """Create static library archive from object files.

        Args:
            work_dir: Directory object paths are relative to
            archive_path: Path for the output library
            object_files: Object file paths, relative to work_dir
            list_path: Where to write the object list (default <archive>.list)

        Returns:
            Path to generated archive file

        Raises:
            ArchiveError: If archive creation fails
        """
        if not object_files:
            raise ArchiveError("No object files provided for archive")

        archive_path.parent.mkdir(parents=True, exist_ok=True)
        list_path = list_path or archive_path.with_suffix(".list")
        self.write_object_list(list_path, object_files)

        temp_path = archive_path.with_name(f".{archive_path.name}.partial")
        if temp_path.exists():
            temp_path.unlink()

        if self.show_progress:
            print(f"Creating {archive_path.name} archive from {len(object_files)} object files...")

        try:
            if self.windows:
                self._run_lib(work_dir, temp_path, list_path)
            else:
                self._run_ar(work_dir, temp_path, object_files)

            if not temp_path.exists():
                raise ArchiveError(f"Archive was not created: {archive_path}")

            os.replace(temp_path, archive_path)
        except CommandError as e:
            raise ArchiveError(f"Failed to create archive {archive_path.name}: {e}") from e
        finally:
            if temp_path.exists():
                temp_path.unlink()

        if self.show_progress:
            size = archive_path.stat().st_size
            print(f"✓ Created {archive_path.name}: {size:,} bytes ({size / 1024 / 1024:.2f} MB)")

        return archive_path

    def _run_ar(self, work_dir: Path, temp_path: Path, object_files: Sequence[str]) -> None:
        objects = list(object_files)
        for start in range(0, len(objects), self.AR_BATCH_SIZE):
            batch = objects[start:start + self.AR_BATCH_SIZE]
            cmd = [self.ar_path, "-crs", str(temp_path)] + batch
            self._check(cmd, work_dir, temp_path)

    def _run_lib(self, work_dir: Path, temp_path: Path, list_path: Path) -> None:
        cmd = [self.lib_path, f"/OUT:{temp_path}", f"@{list_path}"]
        self._check(cmd, work_dir, temp_path)

    def _check(self, cmd: List[str], work_dir: Path, temp_path: Path) -> None:
        result = self.runner.run(cmd, cwd=work_dir, capture=True)
        if not result.ok:
            error_msg = f"Archive creation failed for {temp_path.name}\n"
            error_msg += f"stderr: {result.stderr}\n"
            error_msg += f"stdout: {result.stdout}"
            raise ArchiveError(error_msg)
