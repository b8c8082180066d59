"""Abstract base classes for tool packages.

This module defines the interface for the external tool packages the build
installs before it can check out WebRTC (currently depot_tools).
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict


class PackageError(Exception):
    """Base exception for package management errors."""

    pass


class IPackage(ABC):
    """Interface for installable tool packages."""

    @abstractmethod
    def ensure_package(self) -> Path:
        """Ensure package is installed and current.

        Returns:
            Path to the package directory

        Raises:
            PackageError: If installation fails
        """
        pass

    @abstractmethod
    def is_installed(self) -> bool:
        """Check if package is already installed.

        Returns:
            True if package directory exists and is valid
        """
        pass

    @abstractmethod
    def get_package_info(self) -> Dict[str, Any]:
        """Get information about the package.

        Returns:
            Dictionary with package metadata (url, path, etc.)
        """
        pass
