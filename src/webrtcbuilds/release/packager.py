"""Release packaging.

Copies public headers and built libraries into ``<work_dir>/<label>/`` and
optionally zips the tree into ``<work_dir>/<label>.zip``.

Package Structure:
    <label>/
    ├── include/
    │   ├── api/..., rtc_base/..., ...   # WebRTC headers, source-relative
    │   ├── openssl/...                  # BoringSSL
    │   └── absl/...                     # Abseil
    └── lib/
        └── {out_dir}/                   # One per gn output directory
            ├── libwebrtc_full.a
            ├── *.so / *.dll / *.jar
            └── pkgconfig/libwebrtc_full.pc   # Linux hosts
"""

import fnmatch
import logging
import os
import shutil
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from typing import List, Optional, Sequence, Tuple

from tqdm import tqdm

from ..config.build_config import BuildTarget
from ..config.workspace import Workspace
from ..source.revision import RevisionSpec

logger = logging.getLogger(__name__)

RESOURCE_DIR = Path(__file__).resolve().parent.parent / "resources"
PKGCONFIG_TEMPLATE = Path("pkgconfig") / "libwebrtc_full.pc.in"

# Top-level source directories that hold no public headers
MAIN_TREE_EXCLUDES: Tuple[str, ...] = (
    "third_party",
    "out",
    "build",
    "buildtools",
    "tools",
    "tools_webrtc",
    "testing",
    "examples",
    "data",
    "resources",
)

LIBRARY_PATTERNS: Tuple[str, ...] = ("*.so", "*.dll", "*.jar", "*webrtc_full*")
MAX_LIBRARY_DEPTH = 6


class PackagingError(Exception):
    """Raised when an expected build artifact directory is missing."""

    pass


@dataclass(frozen=True)
class HeaderSource:
    """A vendored header tree: ``subdir`` under ``root`` is copied as-is."""

    root: str
    subdir: str


VENDORED_HEADERS: Tuple[HeaderSource, ...] = (
    HeaderSource(root="third_party/boringssl/src/include", subdir="openssl"),
    HeaderSource(root="third_party/abseil-cpp", subdir="absl"),
)


@dataclass
class PackageResult:
    """What the package stage produced."""

    label: str
    package_dir: Path
    header_count: int = 0
    libraries: List[Path] = field(default_factory=list)
    pkgconfig_files: List[Path] = field(default_factory=list)
    archive_path: Optional[Path] = None


def package_label(project_name: str, revision: RevisionSpec, target: BuildTarget) -> str:
    """Package label.

    Branch builds:  <project>-<branch_number>-<target_os>-<build_type>[-<cpu>]
    Others:         <project>-<revision_number>-<short_sha>-<target_os>-<build_type>[-<cpu>]
    """
    if revision.branch:
        parts = [project_name, revision.branch_number, target.target_os]
    else:
        if revision.number is None:
            raise PackagingError(f"Revision number of {revision.sha} is needed for the package label")
        parts = [project_name, str(revision.number), revision.short_sha, target.target_os]

    parts.append(target.build_type)
    if target.target_cpu != "none":
        parts.append(target.target_cpu)
    return "-".join(parts)


class PackagingAssembler:
    """Assembles the distributable package tree."""

    def __init__(
        self,
        workspace: Workspace,
        host_platform: str,
        vendored_headers: Sequence[HeaderSource] = VENDORED_HEADERS,
        resource_dir: Path = RESOURCE_DIR,
        show_progress: bool = True,
    ):
        """Initialize packaging assembler.

        Args:
            workspace: Workspace layout
            host_platform: 'linux', 'mac' or 'win'
            vendored_headers: Third-party header trees to include
            resource_dir: Directory holding the pkgconfig template
            show_progress: Whether to show a progress bar while copying headers
        """
        self.workspace = workspace
        self.host_platform = host_platform
        self.vendored_headers = tuple(vendored_headers)
        self.resource_dir = Path(resource_dir)
        self.show_progress = show_progress

    def assemble(self, label: str, zip_output: bool = False) -> PackageResult:
        """Build the package tree for ``label``.

        Raises:
            PackagingError: If the source tree or its out directory is missing
        """
        src_dir = self.workspace.src_dir
        if not src_dir.is_dir():
            raise PackagingError(f"Source tree not found: {src_dir}")
        if not self.workspace.out_root.is_dir():
            raise PackagingError(f"Build output not found: {self.workspace.out_root}")

        package_dir = self.workspace.get_package_dir(label)
        (package_dir / "include").mkdir(parents=True, exist_ok=True)
        (package_dir / "lib").mkdir(parents=True, exist_ok=True)

        result = PackageResult(label=label, package_dir=package_dir)
        result.header_count = self.copy_headers(package_dir / "include")
        result.libraries = self.copy_libraries(package_dir / "lib")

        if self.host_platform == "linux":
            result.pkgconfig_files = self.write_pkgconfig(package_dir / "lib")

        if zip_output:
            result.archive_path = self.create_zip(package_dir, self.workspace.get_package_archive(label))

        return result

    def find_headers(self) -> List[Tuple[Path, Path]]:
        """(source, path relative to include/) for every header to copy."""
        src_dir = self.workspace.src_dir
        headers = []

        for dirpath, dirnames, filenames in os.walk(src_dir):
            current = Path(dirpath)
            if current == src_dir:
                dirnames[:] = [d for d in dirnames if d not in MAIN_TREE_EXCLUDES]
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for name in sorted(filenames):
                if name.endswith(".h"):
                    source = current / name
                    headers.append((source, source.relative_to(src_dir)))

        for vendored in self.vendored_headers:
            root = src_dir / vendored.root
            tree = root / vendored.subdir
            if not tree.is_dir():
                logger.warning("Vendored headers not found: %s", tree)
                continue
            for source in sorted(tree.rglob("*.h")):
                headers.append((source, source.relative_to(root)))

        return headers

    def copy_headers(self, include_dir: Path) -> int:
        headers = self.find_headers()
        for source, relative in tqdm(
            headers, desc="Copying headers", unit="file", disable=not self.show_progress
        ):
            destination = include_dir / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, destination)
        return len(headers)

    def find_libraries(self) -> List[Path]:
        """Library files under src/out, relative to it."""
        out_root = self.workspace.out_root
        found = []
        for dirpath, dirnames, filenames in os.walk(out_root):
            current = Path(dirpath)
            relative_dir = current.relative_to(out_root)
            # Files below this depth are never artifacts, like find -maxdepth
            if len(relative_dir.parts) + 1 >= MAX_LIBRARY_DEPTH:
                dirnames[:] = []
            dirnames.sort()
            for name in sorted(filenames):
                if not any(fnmatch.fnmatch(name, pattern) for pattern in LIBRARY_PATTERNS):
                    continue
                # Object lists and half-written archives are not artifacts
                if name.startswith(".") or name.endswith(".list"):
                    continue
                if (current / name).is_file():
                    found.append(relative_dir / name)
        return sorted(found)

    def copy_libraries(self, lib_dir: Path) -> List[Path]:
        copied = []
        for relative in self.find_libraries():
            destination = lib_dir / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.workspace.out_root / relative, destination)
            copied.append(destination)
        print(f"Copied {len(copied)} libraries")
        return copied

    def write_pkgconfig(self, lib_dir: Path) -> List[Path]:
        """Write a pkg-config file for each output directory with a combined library."""
        template_path = self.resource_dir / PKGCONFIG_TEMPLATE
        if not template_path.is_file():
            raise PackagingError(f"pkg-config template not found: {template_path}")
        template = Template(template_path.read_text())

        written = []
        configs = sorted({lib.parent for lib in lib_dir.rglob("libwebrtc_full.a")})
        for config_dir in configs:
            config = config_dir.relative_to(lib_dir).as_posix()
            pc_path = config_dir / "pkgconfig" / "libwebrtc_full.pc"
            pc_path.parent.mkdir(parents=True, exist_ok=True)
            pc_path.write_text(template.safe_substitute(CONFIG=config))
            written.append(pc_path)
        return written

    def create_zip(self, package_dir: Path, archive_path: Path) -> Path:
        """Zip include/ and lib/ of the package tree, replacing an old archive."""
        if archive_path.exists():
            archive_path.unlink()

        print(f"Creating {archive_path.name}")
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for top in ("include", "lib"):
                for path in sorted((package_dir / top).rglob("*")):
                    if path.is_file():
                        archive.write(path, path.relative_to(package_dir).as_posix())
        return archive_path
