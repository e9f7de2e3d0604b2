"""
Retention policy for condbuild.

Decides which old package versions may be deleted. Versions come from the
registry newest-first. Any version with a tag matching the ignore pattern
is protected and never deleted; of the rest, the newest ``keep`` survive.
"""

import re
from typing import Iterable, Optional, Pattern, Union

from .domain.version import VersionRecord, RetentionDecision


def compile_ignore_pattern(pattern: Union[str, Pattern, None]) -> Optional[Pattern]:
    """Compile the ignore pattern; empty means nothing is protected."""
    if pattern is None or pattern == "":
        return None
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


def is_protected(version: VersionRecord, pattern: Optional[Pattern]) -> bool:
    """A version is protected if any of its tags matches the pattern."""
    if pattern is None:
        return False
    return any(pattern.search(tag) for tag in version.tags)


def compute_deletions(
    versions: Iterable[VersionRecord],
    keep: Optional[int],
    ignore_pattern: Union[str, Pattern, None] = None,
) -> RetentionDecision:
    """
    Compute the versions eligible for deletion.

    Args:
        versions: Versions ordered newest first
        keep: Number of unprotected versions to keep; None disables retention
        ignore_pattern: Regex over tag names marking protected versions

    Returns:
        RetentionDecision with the ids to delete
    """
    if keep is None:
        return RetentionDecision()
    if keep < 0:
        raise ValueError(f"keep must be non-negative, got {keep}")

    pattern = compile_ignore_pattern(ignore_pattern)
    decision = RetentionDecision()
    delete = set()

    for version in versions:
        if is_protected(version, pattern):
            decision.protected.append(version.id)
        elif len(decision.kept) < keep:
            decision.kept.append(version.id)
        else:
            delete.add(version.id)

    decision.delete = frozenset(delete)
    return decision
