"""Configuration for webrtcbuilds.

This module builds the immutable per-invocation configuration and the
workspace path layout.
"""

from .build_config import (
    BUILD_TYPES,
    DEFAULT_BRANCH,
    PROJECT_NAME,
    REPO_URL,
    TARGET_CPUS,
    TARGET_OSES,
    BuildConfig,
    BuildTarget,
    ConfigError,
)
from .workspace import Workspace

__all__ = [
    "BUILD_TYPES",
    "DEFAULT_BRANCH",
    "PROJECT_NAME",
    "REPO_URL",
    "TARGET_CPUS",
    "TARGET_OSES",
    "BuildConfig",
    "BuildTarget",
    "ConfigError",
    "Workspace",
]
