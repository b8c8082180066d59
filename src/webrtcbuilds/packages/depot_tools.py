"""depot_tools management.

Chromium's depot_tools provides fetch, gclient, gn and ninja. It is cloned
once into the tool cache and hard-reset on later runs so local edits from a
previous run never leak into the next one.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..command_runner import CommandError, CommandRunner
from .package import IPackage, PackageError

logger = logging.getLogger(__name__)


class DepotToolsError(PackageError):
    """Raised when depot_tools cannot be installed or refreshed."""

    pass


class DepotTools(IPackage):
    """Ensures a usable depot_tools checkout."""

    def __init__(
        self,
        runner: CommandRunner,
        install_dir: Path,
        url: str,
        host_platform: str,
    ):
        """Initialize depot_tools manager.

        Args:
            runner: Command runner
            install_dir: Checkout location
            url: depot_tools git URL
            host_platform: 'linux', 'mac' or 'win'
        """
        self.runner = runner
        self.install_dir = Path(install_dir)
        self.url = url
        self.host_platform = host_platform

    def is_installed(self) -> bool:
        return (self.install_dir / ".git").is_dir()

    def get_package_info(self) -> Dict[str, Any]:
        return {
            "name": "depot_tools",
            "url": self.url,
            "path": str(self.install_dir),
            "installed": self.is_installed(),
        }

    def ensure_package(self) -> Path:
        """Clone depot_tools, or reset an existing checkout.

        Returns:
            Path to the depot_tools directory

        Raises:
            DepotToolsError: If git fails
        """
        try:
            if not self.is_installed():
                self.install_dir.parent.mkdir(parents=True, exist_ok=True)
                print(f"Cloning depot_tools into {self.install_dir}")
                self._check(
                    ["git", "clone", "-q", self.url, str(self.install_dir)],
                    "clone depot_tools",
                )
                if self.host_platform == "win":
                    # First run of gclient.bat bootstraps its bundled python
                    self._check(
                        [str(self.install_dir / "gclient.bat")],
                        "bootstrap depot_tools",
                        cwd=self.install_dir,
                    )
            else:
                logger.debug("Resetting depot_tools in %s", self.install_dir)
                self._check(
                    ["git", "reset", "--hard", "-q"],
                    "reset depot_tools",
                    cwd=self.install_dir,
                )
        except CommandError as e:
            raise DepotToolsError(str(e)) from e

        return self.install_dir

    def _check(self, cmd, action: str, cwd=None) -> None:
        result = self.runner.run(cmd, cwd=cwd)
        if not result.ok:
            raise DepotToolsError(f"Failed to {action} (exit code {result.returncode})")
