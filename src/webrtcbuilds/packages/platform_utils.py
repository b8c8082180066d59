"""Platform Detection Utilities.

This module detects the host platform that drives tool selection for the
WebRTC build (depot_tools entry points, archiver, dependency installers).

Supported Platforms:
    - linux
    - mac
    - win (native Windows, MSYS and Cygwin shells)
"""

import platform
import sys
from typing import Literal, Optional, Tuple

HostPlatform = Literal["linux", "mac", "win"]

HOST_PLATFORMS: Tuple[str, ...] = ("linux", "mac", "win")


class PlatformError(Exception):
    """Raised when platform detection fails or platform is unsupported."""

    pass


class PlatformDetector:
    """Detects the current host platform."""

    @staticmethod
    def detect_host_platform(override: Optional[str] = None) -> str:
        """Detect the host platform.

        Args:
            override: Explicit platform name that wins over detection

        Returns:
            'linux', 'mac' or 'win'

        Raises:
            PlatformError: If the host or the override is unsupported
        """
        if override:
            if override not in HOST_PLATFORMS:
                raise PlatformError(
                    f"Unsupported platform override: {override}. "
                    + f"Expected one of {', '.join(HOST_PLATFORMS)}"
                )
            return override

        system = sys.platform
        if system.startswith("darwin"):
            return "mac"
        elif system.startswith("linux"):
            return "linux"
        elif system.startswith(("win32", "cygwin", "msys")):
            return "win"
        else:
            raise PlatformError(f"Building on unsupported OS: {system}")

    @staticmethod
    def get_platform_info() -> dict:
        """Get detailed information about the current platform.

        Returns:
            Dictionary with platform information including system, machine, and Python info
        """
        return {
            "system": platform.system(),
            "machine": platform.machine(),
            "platform": platform.platform(),
            "python_version": platform.python_version(),
            "is_64bit": sys.maxsize > 2**32,
        }
