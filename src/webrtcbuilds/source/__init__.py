"""WebRTC source management.

Revision resolution, checkout caching and source patching.
"""

from .checkout import (
    CheckoutCoordinator,
    CheckoutError,
    CheckoutState,
    CheckoutStateStore,
    CheckoutStatus,
    SyncPhase,
)
from .patcher import PatchApplier, PatchError, PatchResult, SourcePatch, default_patches
from .revision import (
    ResolutionError,
    RevisionResolver,
    RevisionSpec,
    branch_number,
    parse_commit_position,
    short_rev,
)

__all__ = [
    "CheckoutCoordinator",
    "CheckoutError",
    "CheckoutState",
    "CheckoutStateStore",
    "CheckoutStatus",
    "SyncPhase",
    "PatchApplier",
    "PatchError",
    "PatchResult",
    "SourcePatch",
    "default_patches",
    "ResolutionError",
    "RevisionResolver",
    "RevisionSpec",
    "branch_number",
    "parse_commit_position",
    "short_rev",
]
