"""
Prune command for condbuild.

Applies the retention policy on its own, outside of a build.
"""

from typing import Optional

import click
from rich.console import Console

from ..cli_utils import standard_command
from ..config import load_config
from ..context import RunContext
from ..domain.version import RetentionRequest
from ..inputs import normalize_inputs
from ..render import render_retention
from ..services.retention_service import RetentionService
from .common import github_client


@click.command('prune')
@click.option('--package', '-p', required=True, help='Package name; e.g. backend')
@click.option('--keep-versions', required=True, help='Number of unprotected versions to keep')
@click.option('--keep-regex', help='Regex for tags never deleted (default: prod, test and semvers)')
@click.option('--dry-run', is_flag=True, help='Show what would be deleted')
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON on stdout')
@standard_command
def prune_handler(package: str, keep_versions: str, keep_regex: Optional[str], dry_run: bool, as_json: bool):
    """
    Delete old versions of a package image.

    Versions tagged with anything matching --keep-regex are never deleted.
    Of the remaining versions the newest --keep-versions are kept.

    \b
    Examples:
        condbuild prune -p backend --keep-versions 10 --dry-run
        condbuild prune -p backend --keep-versions 5 --keep-regex '^prod$'
    """
    config = load_config()
    ctx = RunContext.from_env()
    inputs = normalize_inputs(ctx, config, package=package, keep_versions=keep_versions, keep_regex=keep_regex)

    report = RetentionService(github_client(config, ctx)).prune(
        RetentionRequest(inputs.image_path, inputs.keep_versions, inputs.keep_regex),
        dry_run=dry_run,
    )
    if not as_json:
        render_retention(report, Console())
    return report.to_dict()
