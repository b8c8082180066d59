"""Workspace layout for webrtcbuilds.

All paths the build touches are derived from the work directory (``-o``).

Workspace Structure:
    <work_dir>/
    ├── .webrtcbuilds/                  # Tool cache (WEBRTCBUILDS_CACHE_DIR overrides)
    │   └── depot_tools/                # Chromium depot_tools checkout
    ├── .webrtcbuilds_target_os         # Cached checkout state
    ├── .webrtcbuilds_revision
    ├── .gclient, .gclient_entries      # Written by fetch/gclient
    ├── src/                            # WebRTC checkout
    │   └── out/
    │       └── {build_type}_{cpu}/     # gn/ninja output, libwebrtc_full.a
    ├── {label}/                        # Package tree
    │   ├── include/
    │   └── lib/
    └── {label}.zip
"""

from pathlib import Path
from typing import Optional


class Workspace:
    """Derives every path used by the build from the work directory."""

    TARGET_OS_FILE = ".webrtcbuilds_target_os"
    REVISION_FILE = ".webrtcbuilds_revision"

    def __init__(self, work_dir: Path, cache_root: Optional[Path] = None):
        """Initialize workspace layout.

        Args:
            work_dir: Work directory. Relative paths are resolved.
            cache_root: Tool cache location. Defaults to <work_dir>/.webrtcbuilds
        """
        self.work_dir = Path(work_dir).resolve()
        if cache_root is not None:
            self.cache_root = Path(cache_root).resolve()
        else:
            self.cache_root = self.work_dir / ".webrtcbuilds"

    @property
    def src_dir(self) -> Path:
        """Root of the WebRTC checkout."""
        return self.work_dir / "src"

    @property
    def out_root(self) -> Path:
        """Directory holding every gn output directory."""
        return self.src_dir / "out"

    @property
    def depot_tools_dir(self) -> Path:
        return self.cache_root / "depot_tools"

    @property
    def target_os_file(self) -> Path:
        return self.work_dir / self.TARGET_OS_FILE

    @property
    def revision_file(self) -> Path:
        return self.work_dir / self.REVISION_FILE

    def get_output_dir(self, name: str) -> Path:
        """Get a gn output directory.

        Args:
            name: Output directory name (e.g. 'Release_x64')

        Returns:
            Path to src/out/<name>
        """
        return self.out_root / name

    def get_package_dir(self, label: str) -> Path:
        """Get the package tree directory for a label."""
        return self.work_dir / label

    def get_package_archive(self, label: str) -> Path:
        """Get the zip archive path for a label."""
        return self.work_dir / f"{label}.zip"

    def gclient_files(self):
        """List the gclient bookkeeping files present in the work directory."""
        return sorted(self.work_dir.glob(".gclient*"))

    def ensure_work_dir(self) -> None:
        """Create the work directory if needed."""
        self.work_dir.mkdir(parents=True, exist_ok=True)
