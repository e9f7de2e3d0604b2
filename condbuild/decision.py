"""
Build decision engine for condbuild.

Fuses the change-detection signal, the repository override and fallback
availability into one verdict. First match wins:

    1. watched paths changed        -> build (diff-trigger)
    2. repository override given    -> build (repository-override)
    3. no fallback tag configured   -> build (no-fallback-configured)
    4. fallback manifest not usable -> build (fallback-unusable)
    5. otherwise                    -> reuse the fallback (reuse-fallback)
"""

import logging
from typing import Union

from .domain.verdict import BuildVerdict, VerdictReason, FallbackAvailability

logger = logging.getLogger(__name__)


def decide(
    paths_changed: bool,
    repository_override: bool,
    fallback_tag_provided: bool,
    fallback_available: Union[bool, FallbackAvailability],
) -> BuildVerdict:
    """
    Decide whether a fresh build is required.

    ``fallback_available`` may be a FallbackAvailability; UNKNOWN counts
    as unavailable.

    Returns:
        BuildVerdict
    """
    if isinstance(fallback_available, FallbackAvailability):
        fallback_available = fallback_available.usable

    if paths_changed:
        return BuildVerdict(True, VerdictReason.DIFF_TRIGGER)
    if repository_override:
        return BuildVerdict(True, VerdictReason.REPOSITORY_OVERRIDE)
    if not fallback_tag_provided:
        return BuildVerdict(True, VerdictReason.NO_FALLBACK_CONFIGURED)
    if not fallback_available:
        return BuildVerdict(True, VerdictReason.FALLBACK_UNUSABLE)
    return BuildVerdict(False, VerdictReason.REUSE_FALLBACK)


def is_repository_override(repository: str, context_repository: str) -> bool:
    """True when the caller asked to build from a different repository."""
    if not repository:
        return False
    return repository.strip() != context_repository.strip()
