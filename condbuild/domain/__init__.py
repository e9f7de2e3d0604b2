"""
Domain layer for condbuild.

Contains pure domain objects with no I/O or side effects:
- PackageSpec: The package being built and its image path
- ResolvedTags: Fully-qualified registry tags
- BuildVerdict: Triggered/not-triggered decision with a reason
- VersionRecord: A published package version, input to retention

These objects are immutable where possible and provide
serialization methods for JSON output.
"""

from .package import PackageSpec
from .tag import ResolvedTags
from .verdict import BuildVerdict, VerdictReason, FallbackAvailability
from .version import VersionRecord, RetentionRequest, RetentionDecision

__all__ = [
    'PackageSpec',
    'ResolvedTags',
    'BuildVerdict',
    'VerdictReason',
    'FallbackAvailability',
    'VersionRecord',
    'RetentionRequest',
    'RetentionDecision',
]
