"""Build configuration for webrtcbuilds.

BuildConfig is created once at start-up from the command-line values and the
process environment, and handed to every component. Components never read
``os.environ`` themselves.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from ..packages.platform_utils import PlatformDetector
from .workspace import Workspace

PROJECT_NAME = "webrtcbuilds"
REPO_URL = "https://chromium.googlesource.com/external/webrtc"
DEPOT_TOOLS_URL = "https://chromium.googlesource.com/chromium/tools/depot_tools.git"

# Branch value meaning "no branch": resolve -r or the latest revision instead
DEFAULT_BRANCH = "artifacts"

TARGET_OSES: Tuple[str, ...] = ("linux", "mac", "win", "android", "ios")
TARGET_CPUS: Tuple[str, ...] = ("none", "x86", "x64", "arm", "arm64")
BUILD_TYPES: Tuple[str, ...] = ("Debug", "Release")

CPU_ALIASES = {"x86_64": "x64", "amd64": "x64", "aarch64": "arm64"}


class ConfigError(Exception):
    """Raised when build configuration values are invalid."""

    pass


@dataclass(frozen=True)
class BuildTarget:
    """What to build: target OS, target CPU and build type."""

    target_os: str
    target_cpu: str = "none"
    build_type: str = "Release"

    def __post_init__(self):
        if self.target_os not in TARGET_OSES:
            raise ConfigError(
                f"Unknown target OS '{self.target_os}'. "
                + f"Expected one of: {', '.join(TARGET_OSES)}"
            )
        if self.target_cpu not in TARGET_CPUS:
            raise ConfigError(
                f"Unknown target CPU '{self.target_cpu}'. "
                + f"Expected one of: {', '.join(TARGET_CPUS)}"
            )
        if self.build_type not in BUILD_TYPES:
            raise ConfigError(f"Unknown build type '{self.build_type}'")

    @property
    def is_release(self) -> bool:
        return self.build_type == "Release"

    @property
    def is_mobile(self) -> bool:
        return self.target_os in ("android", "ios")


@dataclass(frozen=True)
class BuildConfig:
    """Immutable configuration for one invocation of the build."""

    workspace: Workspace
    host_platform: str
    target: BuildTarget
    branch: Optional[str] = None
    revision: Optional[str] = None
    blacklist: Optional[str] = None
    enable_rtti: bool = False
    enable_bitcode: bool = False
    package: bool = False
    skip_build: bool = False
    zip_output: bool = False
    skip_webrtc_deps: bool = False
    verbose: bool = False
    repo_url: str = REPO_URL
    depot_tools_url: str = DEPOT_TOOLS_URL
    project_name: str = PROJECT_NAME
    vs_tools_dir: Optional[Path] = None
    remote_timeout: float = 120.0
    tool_env: Dict[str, str] = field(default_factory=dict)

    @property
    def work_dir(self) -> Path:
        return self.workspace.work_dir

    @property
    def is_windows_host(self) -> bool:
        return self.host_platform == "win"

    @classmethod
    def from_environment(
        cls,
        work_dir: Path,
        target_os: Optional[str] = None,
        target_cpu: str = "none",
        build_type: str = "Release",
        branch: Optional[str] = DEFAULT_BRANCH,
        revision: Optional[str] = None,
        blacklist: Optional[str] = None,
        enable_rtti: bool = False,
        enable_bitcode: bool = False,
        package: bool = False,
        skip_build: bool = False,
        zip_output: bool = False,
        skip_webrtc_deps: bool = False,
        verbose: bool = False,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "BuildConfig":
        """Build the configuration from CLI values and the process environment.

        Args:
            work_dir: Output/work directory
            target_os: Target OS (None uses the host platform)
            environ: Environment to read (None reads os.environ)

        Returns:
            BuildConfig

        Raises:
            ConfigError: If a value is invalid
            PlatformError: If the host platform is unsupported
        """
        if environ is None:
            environ = os.environ

        host_platform = PlatformDetector.detect_host_platform(environ.get("PLATFORM"))

        target_cpu = CPU_ALIASES.get(target_cpu, target_cpu)
        target = BuildTarget(
            target_os=target_os or host_platform,
            target_cpu=target_cpu,
            build_type=build_type,
        )

        if branch == DEFAULT_BRANCH or not branch:
            branch = None

        if blacklist:
            try:
                re.compile(blacklist)
            except re.error as e:
                raise ConfigError(f"Invalid blacklist pattern '{blacklist}': {e}") from e

        cache_env = environ.get("WEBRTCBUILDS_CACHE_DIR")
        workspace = Workspace(Path(work_dir), Path(cache_env) if cache_env else None)

        vs_tools = environ.get("VS140COMNTOOLS")

        return cls(
            workspace=workspace,
            host_platform=host_platform,
            target=target,
            branch=branch,
            revision=revision or None,
            blacklist=blacklist or None,
            enable_rtti=enable_rtti,
            enable_bitcode=enable_bitcode,
            package=package,
            skip_build=skip_build,
            zip_output=zip_output,
            skip_webrtc_deps=skip_webrtc_deps,
            verbose=verbose,
            vs_tools_dir=Path(vs_tools) if vs_tools else None,
            tool_env=cls._tool_environment(environ, workspace.depot_tools_dir),
        )

    @staticmethod
    def _tool_environment(environ: Mapping[str, str], depot_tools_dir: Path) -> Dict[str, str]:
        """Environment for external tools: depot_tools first on PATH."""
        env = dict(environ)
        path = env.get("PATH", "")
        env["PATH"] = os.pathsep.join(p for p in (str(depot_tools_dir), path) if p)
        # Use the locally installed Visual Studio instead of Google's toolchain
        env["DEPOT_TOOLS_WIN_TOOLCHAIN"] = "0"
        return env
