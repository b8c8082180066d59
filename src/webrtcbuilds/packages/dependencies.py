"""Host and WebRTC build dependency checks.

Two separate checks run before a build:

- Host dependencies, needed by webrtcbuilds itself (git, curl, GNU cp on
  macOS, Visual Studio on Windows). Always checked.
- WebRTC build dependencies, installed by scripts shipped inside the WebRTC
  checkout. Skipped with ``-w``.
"""

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from ..command_runner import CommandError, CommandRunner
from .package import PackageError

logger = logging.getLogger(__name__)


class DependencyError(PackageError):
    """Raised when a required dependency is missing and cannot be installed."""

    pass


def _running_as_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


class DependencyChecker:
    """Checks and installs build dependencies for the host platform."""

    # (apt package, binary that proves it is installed)
    LINUX_PACKAGES: List[Tuple[str, str]] = [
        ("curl", "curl"),
        ("git", "git"),
        ("python3", "python3"),
        ("lbzip2", "lbzip2"),
        ("lsb-release", "lsb_release"),
    ]

    BUILD_DEPS_FLAGS = [
        "--no-syms",
        "--no-arm",
        "--no-chromeos-fonts",
        "--no-nacl",
        "--no-prompt",
    ]

    MSCOREFONTS_EULA = (
        "ttf-mscorefonts-installer msttcorefonts/accepted-mscorefonts-eula select true\n"
    )

    APT_SOURCES = Path("/etc/apt/sources.list")

    def __init__(
        self,
        runner: CommandRunner,
        host_platform: str,
        vs_tools_dir: Optional[Path] = None,
        is_root: Optional[Callable[[], bool]] = None,
    ):
        """Initialize dependency checker.

        Args:
            runner: Command runner
            host_platform: 'linux', 'mac' or 'win'
            vs_tools_dir: Visual Studio common tools directory (Windows)
            is_root: Returns True when running with root privileges
        """
        self.runner = runner
        self.host_platform = host_platform
        self.vs_tools_dir = vs_tools_dir
        self.is_root = is_root or _running_as_root

    def check_host(self) -> None:
        """Make sure the tools webrtcbuilds itself needs are present.

        Raises:
            DependencyError: If a dependency is missing and cannot be installed
        """
        if self.host_platform == "mac":
            self._check_mac()
        elif self.host_platform == "linux":
            self._check_linux()
        elif self.host_platform == "win":
            self._check_win()
        else:
            raise DependencyError(f"Unsupported host platform: {self.host_platform}")

    def check_webrtc(self, src_dir: Path, target_os: str) -> None:
        """Run the WebRTC checkout's own dependency installers.

        Args:
            src_dir: WebRTC checkout root
            target_os: Target OS

        Raises:
            DependencyError: If an installer is missing or fails
        """
        if target_os == "android":
            script = src_dir / "build" / "install-build-deps-android.sh"
            self._require_script(script)
            self._run_privileged(["bash", str(script)], "install Android build dependencies")
        elif self.host_platform == "linux":
            script = src_dir / "build" / "install-build-deps.sh"
            self._require_script(script)
            self._run_privileged(
                ["debconf-set-selections"],
                "accept the mscorefonts EULA",
                input_text=self.MSCOREFONTS_EULA,
            )
            self._run_privileged(
                [str(script)] + self.BUILD_DEPS_FLAGS, "install WebRTC build dependencies"
            )
        else:
            logger.debug("No WebRTC dependency installer for %s", self.host_platform)

    def _check_mac(self) -> None:
        # GNU cp is needed for `cp --parents` style copies
        if self.runner.which("gcp"):
            return
        if not self.runner.which("brew"):
            raise DependencyError("GNU coreutils (gcp) missing and Homebrew is not installed")
        self._run(["brew", "install", "coreutils"], "install coreutils")

    def _check_linux(self) -> None:
        if not self._multiverse_enabled():
            print("*** Warning: The Multiverse repository is probably not enabled ***")
            print("*** which is required for things like msttcorefonts.           ***")

        missing = [name for name, binary in self.LINUX_PACKAGES if not self.runner.which(binary)]
        if not missing:
            return

        print(f"Installing missing packages: {' '.join(missing)}")
        self._run_privileged(["apt-get", "update", "-qq"], "update apt package lists")
        self._run_privileged(["apt-get", "install", "-y"] + missing, "install packages")

    def _check_win(self) -> None:
        if not self.vs_tools_dir:
            raise DependencyError(
                "Building under Microsoft Windows requires Microsoft Visual Studio 2015 "
                + "(VS140COMNTOOLS is not set)"
            )

    def _multiverse_enabled(self) -> bool:
        try:
            lines = self.APT_SOURCES.read_text(errors="replace").splitlines()
        except OSError:
            return False
        return any("multiverse" in line for line in lines if not line.lstrip().startswith("#"))

    def _require_script(self, script: Path) -> None:
        if not script.exists():
            raise DependencyError(f"Dependency installer not found: {script}")

    def _privileged(self, cmd: Sequence[str]) -> List[str]:
        """Prefix a command with sudo unless we already are root."""
        if self.is_root():
            return list(cmd)
        if not self.runner.which("sudo"):
            raise DependencyError(
                "Installing dependencies needs root privileges: run as root or install sudo "
                + f"(command: {' '.join(cmd)})"
            )
        return ["sudo"] + list(cmd)

    def _run_privileged(self, cmd: Sequence[str], action: str, input_text: Optional[str] = None) -> None:
        self._run(self._privileged(cmd), action, input_text=input_text)

    def _run(self, cmd: Sequence[str], action: str, input_text: Optional[str] = None) -> None:
        try:
            result = self.runner.run(cmd, input_text=input_text)
        except CommandError as e:
            raise DependencyError(f"Failed to {action}: {e}") from e
        if not result.ok:
            raise DependencyError(f"Failed to {action} (exit code {result.returncode})")
