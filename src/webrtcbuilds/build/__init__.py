"""Build system components for webrtcbuilds.

This module provides the gn/ninja driver, object collection, library
combination and the build orchestrator.
"""

from .archive_creator import ArchiveCreator, ArchiveError
from .combiner import LIBRARY_NAME, CombinedLibrary, CombineError, ObjectCombiner
from .compiler import CompilationError, WebRTCCompiler
from .gn_args import OutputConfig, build_gn_args, output_configs
from .object_collector import (
    ExclusionPolicy,
    ObjectCollectionError,
    ObjectCollector,
    extract_ledger_objects,
)
from .orchestrator import BuildOrchestrator, BuildResult
from .stripper import StripError, StripToolSelector, SymbolStripper

__all__ = [
    "ArchiveCreator",
    "ArchiveError",
    "LIBRARY_NAME",
    "CombinedLibrary",
    "CombineError",
    "ObjectCombiner",
    "CompilationError",
    "WebRTCCompiler",
    "OutputConfig",
    "build_gn_args",
    "output_configs",
    "ExclusionPolicy",
    "ObjectCollectionError",
    "ObjectCollector",
    "extract_ledger_objects",
    "BuildOrchestrator",
    "BuildResult",
    "StripError",
    "StripToolSelector",
    "SymbolStripper",
]
