"""
Build verdict domain objects for condbuild.

The verdict is computed once per invocation and never changes afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any


class VerdictReason(Enum):
    """Why a build was or was not triggered."""
    DIFF_TRIGGER = "diff-trigger"
    REPOSITORY_OVERRIDE = "repository-override"
    NO_FALLBACK_CONFIGURED = "no-fallback-configured"
    FALLBACK_UNUSABLE = "fallback-unusable"
    REUSE_FALLBACK = "reuse-fallback"

    @property
    def message(self) -> str:
        return _REASON_MESSAGES[self]


_REASON_MESSAGES = {
    VerdictReason.DIFF_TRIGGER: "Build triggered. Watched paths changed.",
    VerdictReason.REPOSITORY_OVERRIDE: "Build triggered. Override repository provided.",
    VerdictReason.NO_FALLBACK_CONFIGURED: "Build triggered. No tag_fallback provided.",
    VerdictReason.FALLBACK_UNUSABLE: "Build triggered. Fallback tag (tag_fallback) not usable.",
    VerdictReason.REUSE_FALLBACK: "Container build not required",
}


class FallbackAvailability(Enum):
    """Result of probing the registry for the fallback manifest."""
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"        # Probe errored; treated as unavailable

    @property
    def usable(self) -> bool:
        return self is FallbackAvailability.AVAILABLE


@dataclass(frozen=True)
class BuildVerdict:
    """Triggered/not-triggered decision plus its reason."""

    triggered: bool
    reason: VerdictReason

    def __str__(self) -> str:
        return self.reason.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            'triggered': self.triggered,
            'reason': self.reason.value,
        }
