"""Source patches for standalone WebRTC builds.

Patches are plain text substitutions described by SourcePatch records and
applied by PatchApplier. A patch marked ``required`` whose file or pattern is
missing stops the build; optional patches are skipped with a log message,
since the build files they touch move around between WebRTC revisions.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

logger = logging.getLogger(__name__)


class PatchError(Exception):
    """Raised when a required patch cannot be applied."""

    pass


@dataclass(frozen=True)
class SourcePatch:
    """A text substitution in a file relative to the source root."""

    path: str
    search: str
    replacement: str
    required: bool = True
    description: str = ""


@dataclass
class PatchResult:
    """What happened to each patch."""

    applied: List[SourcePatch]
    already_applied: List[SourcePatch]
    skipped: List[SourcePatch]


NO_RTTI_CONFIG = '"//build/config/compiler:no_rtti",'
EXAMPLES_TARGET = '"//webrtc/examples",'


def default_patches(enable_rtti: bool, target_os: str) -> List[SourcePatch]:
    """Patches applied before every build.

    The RTTI patches run in both directions: a checkout kept from an earlier
    -e build gets its no_rtti config back when RTTI is off.

    Args:
        enable_rtti: Remove the no_rtti compiler config
        target_os: Target OS

    Returns:
        Ordered list of patches
    """
    patches = [
        SourcePatch(
            path="BUILD.gn",
            search=EXAMPLES_TARGET,
            replacement="#" + EXAMPLES_TARGET,
            required=False,
            description="Remove the examples from the default build",
        ),
    ]

    rtti_files = [("build/config/BUILDCONFIG.gn", True, "")]
    # The icu package is not part of the iOS toolchain
    if target_os != "ios":
        rtti_files.append(("third_party/icu/BUILD.gn", False, " in icu"))

    for path, required, where in rtti_files:
        if enable_rtti:
            patch = SourcePatch(
                path=path,
                search=NO_RTTI_CONFIG,
                replacement="#" + NO_RTTI_CONFIG,
                required=required,
                description="Enable RTTI" + where,
            )
        else:
            patch = SourcePatch(
                path=path,
                search="#" + NO_RTTI_CONFIG,
                replacement=NO_RTTI_CONFIG,
                required=False,
                description="Disable RTTI" + where,
            )
        patches.append(patch)

    return patches


class PatchApplier:
    """Applies SourcePatch records to a source tree."""

    BACKUP_SUFFIX = ".bak"

    def __init__(self, source_root: Path):
        """Initialize patch applier.

        Args:
            source_root: Directory patch paths are relative to
        """
        self.source_root = Path(source_root)

    def apply_all(self, patches: Sequence[SourcePatch]) -> PatchResult:
        """Apply patches in order.

        Raises:
            PatchError: On the first required patch that does not apply
        """
        result = PatchResult(applied=[], already_applied=[], skipped=[])
        for patch in patches:
            outcome = self.apply(patch)
            getattr(result, outcome).append(patch)
        return result

    def apply(self, patch: SourcePatch) -> str:
        """Apply one patch.

        Returns:
            'applied', 'already_applied' or 'skipped'

        Raises:
            PatchError: If a required patch's file or pattern is missing
        """
        target = self.source_root / patch.path
        label = patch.description or patch.path

        if not target.is_file():
            return self._missing(patch, f"{label}: file not found: {target}")

        text = target.read_text(encoding="utf-8")

        # Commenting out a line leaves the search text inside the replacement
        wraps_search = patch.search in patch.replacement
        if wraps_search:
            pending = patch.search in text.replace(patch.replacement, "")
        else:
            pending = patch.search in text

        if not pending:
            if patch.replacement in text:
                logger.debug("%s: already applied", label)
                return "already_applied"
            return self._missing(patch, f"{label}: pattern {patch.search!r} not found in {target}")

        backup = target.with_name(target.name + self.BACKUP_SUFFIX)
        if not backup.exists():
            shutil.copy2(target, backup)

        if wraps_search:
            text = text.replace(patch.replacement, patch.search)
        target.write_text(text.replace(patch.search, patch.replacement), encoding="utf-8")
        print(f"Patched {patch.path}: {label}")
        return "applied"

    def _missing(self, patch: SourcePatch, message: str) -> str:
        if patch.required:
            raise PatchError(message)
        logger.info("Skipping optional patch, %s", message)
        return "skipped"
