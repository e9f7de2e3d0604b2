"""
condbuild - Conditional container builder with fallback.

Decides, per package of a monorepo, whether a container image has to be
built or whether a previously published image can be relabeled, then
does it.

Quick Start:
    from condbuild import decide, resolve_tags, compute_deletions

    verdict = decide(paths_changed=False, repository_override=False,
                     fallback_tag_provided=True, fallback_available=True)
    verdict.triggered            # False: reuse the fallback

    resolve_tags("pr42\\n\\ndemo", "ghcr.io", "org/platform/worker").csv
    # 'ghcr.io/org/platform/worker:pr42,ghcr.io/org/platform/worker:demo'

Domain Objects:
    PackageSpec - The package being built and its image path
    ResolvedTags - Fully-qualified registry tags
    BuildVerdict - Triggered flag plus VerdictReason
    VersionRecord - A published package version

Services:
    BuildPipeline - Oracle + probe + decision + build/retag dispatch
    RetentionService - Pruning of old package versions
"""

__version__ = "0.4.0"

# Pure logic
from .decision import decide
from .tags import resolve_tags
from .retention import compute_deletions
from .inputs import normalize_inputs, BuildInputs

# Domain objects
from .domain import (
    PackageSpec,
    ResolvedTags,
    BuildVerdict,
    VerdictReason,
    FallbackAvailability,
    VersionRecord,
    RetentionRequest,
    RetentionDecision,
)

# Services (for advanced use)
from .services import (
    Collaborators,
    BuildPipeline,
    PipelineResult,
    RetentionService,
    RetentionReport,
)

from .context import RunContext
from .config import load_config, save_config

__all__ = [
    "__version__",
    # Pure logic
    "decide",
    "resolve_tags",
    "compute_deletions",
    "normalize_inputs",
    "BuildInputs",
    # Domain objects
    "PackageSpec",
    "ResolvedTags",
    "BuildVerdict",
    "VerdictReason",
    "FallbackAvailability",
    "VersionRecord",
    "RetentionRequest",
    "RetentionDecision",
    # Services
    "Collaborators",
    "BuildPipeline",
    "PipelineResult",
    "RetentionService",
    "RetentionReport",
    # Context and configuration
    "RunContext",
    "load_config",
    "save_config",
]
