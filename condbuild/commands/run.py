"""
Run command for condbuild.

Builds a package image when something relevant changed, otherwise
relabels a previously published image. This is the command a CI job calls.
"""

import logging
from typing import Optional, Tuple

import click
from rich.console import Console

from ..cli_utils import standard_command
from ..config import load_config
from ..context import RunContext
from ..domain.version import RetentionRequest
from ..outputs import SummaryEmitter
from ..render import render_retention
from ..services.collaborators import Collaborators
from ..services.pipeline_service import BuildPipeline
from ..services.retention_service import RetentionService
from .common import input_options, inputs_from_options, github_client

logger = logging.getLogger(__name__)


@click.command('run')
@input_options
@click.option('--keep-versions', help='Number of versions to keep; omit to skip cleanup')
@click.option('--keep-regex', help='Regex for tags never deleted (default: prod, test and semvers)')
@click.option('--sbom/--no-sbom', default=True, help='Generate SBOMs for built images (default: on)')
@click.option('--build-arg', 'build_args', multiple=True, help='Build-time variable KEY=VALUE; repeatable')
@click.option('--secret', 'secrets', multiple=True, help='Secret to mount, KEY=VALUE; repeatable')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON on stdout')
@click.option('--pretty/--plain', default=True, help='Render summary tables (default: on)')
@standard_command
def run_handler(
    package: str,
    tags: Tuple[str, ...],
    tag: Optional[str],
    build_context: Optional[str],
    build_file: Optional[str],
    tag_fallback: Optional[str],
    triggers: Tuple[str, ...],
    diff_branch: Optional[str],
    repository: Optional[str],
    registry: Optional[str],
    keep_versions: Optional[str],
    keep_regex: Optional[str],
    sbom: bool,
    build_args: Tuple[str, ...],
    secrets: Tuple[str, ...],
    as_json: bool,
    pretty: bool,
):
    """
    Build and push a package image, or reuse a fallback image.

    A build is triggered when a watched path changed, a different
    repository is requested, no fallback tag is given, or the fallback
    image is missing. Otherwise the fallback is tagged with --tags.

    \b
    Examples:
        # Pull request build, reusing prod when backend/ is untouched
        condbuild run -p backend --tag-fallback prod --triggers ./backend/
        # Several tags, keep 10 old versions
        condbuild run -p frontend --tags pr42 --tags demo --keep-versions 10

    \b
    Outputs (GITHUB_OUTPUT):
        digest     digest of the built image (empty when reused)
        triggered  true|false
        tags_csv   comma-separated resolved tags
    """
    options = dict(locals())
    config = load_config()
    ctx = RunContext.from_env()
    stderr = Console(stderr=True)

    # Validation happens before any network call
    inputs = inputs_from_options(ctx, config, **options)

    if inputs.keep_versions is not None:
        report = RetentionService(github_client(config, ctx)).prune(
            RetentionRequest(inputs.image_path, inputs.keep_versions, inputs.keep_regex)
        )
        if pretty:
            render_retention(report, stderr)

    pipeline = BuildPipeline(
        Collaborators.default(config, ctx, inputs.registry),
        ctx,
        config,
        emit_summary=SummaryEmitter(ctx, console=stderr, pretty=pretty),
    )
    result = pipeline.run(inputs)
    return result.to_dict()
