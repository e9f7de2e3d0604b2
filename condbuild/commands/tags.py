"""
Tags command for condbuild.

Prints the fully-qualified tags a run would publish.
"""

from typing import Optional, Tuple

import click

from ..cli_utils import standard_command
from ..config import load_config
from ..context import RunContext
from .common import input_options, inputs_from_options


@click.command('tags')
@input_options
@click.option('--lines', is_flag=True, help='One tag per line instead of comma-separated')
@click.option('--json', 'as_json', is_flag=True, help='Print image path and tags as JSON')
@standard_command
def tags_handler(
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
    lines: bool,
    as_json: bool,
):
    """
    Resolve tags for a package.

    Blank entries are dropped; each tag is prefixed with
    registry/image_path and lower-cased.

    \b
    Examples:
        condbuild tags -p worker --tags pr42 --tags demo
        # ghcr.io/org/platform/worker:pr42,ghcr.io/org/platform/worker:demo
    """
    options = dict(locals())
    inputs = inputs_from_options(RunContext.from_env(), load_config(), **options)

    if as_json:
        return {'image_path': inputs.image_path, **inputs.tags.to_dict()}
    if lines:
        for resolved in inputs.tags:
            click.echo(resolved)
    else:
        click.echo(inputs.tags.csv)
    return None
