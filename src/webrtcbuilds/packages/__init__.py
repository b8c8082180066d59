"""Tool and dependency management for webrtcbuilds.

This module detects the host platform, installs depot_tools and checks the
host and WebRTC build dependencies.
"""

from .dependencies import DependencyChecker, DependencyError
from .depot_tools import DepotTools, DepotToolsError
from .package import IPackage, PackageError
from .platform_utils import HOST_PLATFORMS, PlatformDetector, PlatformError

__all__ = [
    "DependencyChecker",
    "DependencyError",
    "DepotTools",
    "DepotToolsError",
    "IPackage",
    "PackageError",
    "HOST_PLATFORMS",
    "PlatformDetector",
    "PlatformError",
]
