"""Release packaging for webrtcbuilds."""

from .packager import (
    HeaderSource,
    PackageResult,
    PackagingAssembler,
    PackagingError,
    package_label,
)

__all__ = [
    "HeaderSource",
    "PackageResult",
    "PackagingAssembler",
    "PackagingError",
    "package_label",
]
