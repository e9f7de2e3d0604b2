"""
Input normalization for condbuild.

Validates raw invocation parameters and canonicalizes them into the
fields the rest of the pipeline works with. No network access happens
here, so a bad invocation fails before anything touches the registry.
"""

import logging
import re
import shlex
from dataclasses import dataclass
from typing import Optional, Tuple, Iterable, Union, Dict, Any

from .context import RunContext
from .decision import is_repository_override
from .domain.package import PackageSpec
from .domain.tag import ResolvedTags
from .exit_codes import ConfigError, ValidationError
from .tags import resolve_tags, split_tags

logger = logging.getLogger(__name__)

DEPRECATED_TAG_MESSAGE = "Input 'tag' is deprecated. Please use 'tags' instead."


@dataclass(frozen=True)
class BuildInputs:
    """Normalized invocation parameters for one package."""

    package: PackageSpec
    image_path: str
    registry: str
    tags: ResolvedTags
    fallback_tag: str = ""
    triggers: Tuple[str, ...] = ()
    diff_branch: str = "main"
    keep_versions: Optional[int] = None
    keep_regex: str = ""
    repository: str = ""
    repository_override: bool = False
    sbom: bool = True
    build_args: Tuple[str, ...] = ()
    secrets: Tuple[str, ...] = ()

    @property
    def fallback_ref(self) -> str:
        return f"{self.registry}/{self.image_path}:{self.fallback_tag}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'package': self.package.to_dict(),
            'image_path': self.image_path,
            'registry': self.registry,
            'tags': list(self.tags),
            'tag_fallback': self.fallback_tag,
            'triggers': list(self.triggers),
            'diff_branch': self.diff_branch,
            'keep_versions': self.keep_versions,
            'keep_regex': self.keep_regex,
            'repository': self.repository,
            'repository_override': self.repository_override,
            'sbom': self.sbom,
        }


def parse_triggers(raw: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    """
    Parse watched path prefixes.

    Accepts repeated values or the shell-array form used by workflow
    files, e.g. ``('./backend/' './frontend/')``. Leading "./" is dropped.

    Raises:
        ValidationError: unbalanced quotes
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [raw]

    paths = []
    for chunk in raw:
        text = str(chunk).strip()
        if text.startswith('(') and text.endswith(')'):
            text = text[1:-1]
        try:
            items = shlex.split(text)
        except ValueError as e:
            raise ValidationError(f"triggers: {e}")
        for item in items:
            item = item.strip()
            while item.startswith('./'):
                item = item[2:]
            if item:
                paths.append(item)
    return tuple(paths)


def parse_keep_versions(value: Union[str, int, None]) -> Optional[int]:
    """Parse keep_versions; empty means retention is disabled."""
    if value is None or value == "":
        return None
    try:
        keep = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"keep_versions must be a non-negative integer, got {value!r}")
    if keep < 0:
        raise ValidationError(f"keep_versions must be a non-negative integer, got {value!r}")
    return keep


def _kv_pairs(raw: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    # Forwarded verbatim, only split into lines
    return tuple(split_tags(raw))


def normalize_inputs(
    ctx: RunContext,
    config: Dict[str, Any],
    package: str,
    tags: Union[str, Iterable[str], None] = None,
    tag: Optional[str] = None,
    build_context: Optional[str] = None,
    build_file: Optional[str] = None,
    tag_fallback: Optional[str] = None,
    triggers: Union[str, Iterable[str], None] = None,
    diff_branch: Optional[str] = None,
    keep_versions: Union[str, int, None] = None,
    keep_regex: Optional[str] = None,
    repository: Optional[str] = None,
    sbom: bool = True,
    build_args: Union[str, Iterable[str], None] = None,
    secrets: Union[str, Iterable[str], None] = None,
    registry: Optional[str] = None,
) -> BuildInputs:
    """
    Validate and canonicalize invocation parameters.

    Raises:
        ValidationError: deprecated ``tag`` supplied, missing package or
            repository, or a malformed keep_versions / keep_regex
        ConfigError: the configured default keep_regex does not compile
    """
    if tag:
        raise ValidationError(DEPRECATED_TAG_MESSAGE)

    package = (package or "").strip()
    if not package:
        raise ValidationError("Input 'package' is required")
    if not ctx.repository or '/' not in ctx.repository:
        raise ValidationError("Context repository (owner/repo) is unknown; set GITHUB_REPOSITORY")

    keep = parse_keep_versions(keep_versions)
    from_config = keep_regex is None
    if from_config:
        keep_regex = config.get('retention', {}).get('keep_regex', '')
    if keep_regex:
        try:
            re.compile(keep_regex)
        except re.error as e:
            if from_config:
                raise ConfigError(f"retention.keep_regex is not a valid regular expression: {e}")
            raise ValidationError(f"keep_regex is not a valid regular expression: {e}")

    spec = PackageSpec(
        name=package,
        repository_slug=ctx.repository,
        build_context=build_context or None,
        build_file=build_file or None,
    )
    image_path = spec.image_path(ctx.repository_name or ctx.repository.rsplit('/', 1)[-1])

    registry = (registry or config.get('registry', {}).get('host', 'ghcr.io')).lower()
    entries = split_tags(tags)
    if not entries:
        # Default tag is the pull request number
        entries = split_tags(ctx.event_number)
    resolved = resolve_tags(entries, registry, image_path)
    logger.debug(f"Resolved tags: {resolved.csv or '(none)'}")

    repository = (repository or ctx.repository).strip()
    diff_branch = diff_branch or ctx.default_branch or config.get('git', {}).get('default_branch', 'main')

    return BuildInputs(
        package=spec,
        image_path=image_path,
        registry=registry,
        tags=resolved,
        fallback_tag=(tag_fallback or "").strip(),
        triggers=parse_triggers(triggers),
        diff_branch=diff_branch,
        keep_versions=keep,
        keep_regex=keep_regex or "",
        repository=repository,
        repository_override=is_repository_override(repository, ctx.repository),
        sbom=sbom,
        build_args=_kv_pairs(build_args),
        secrets=_kv_pairs(secrets),
    )
