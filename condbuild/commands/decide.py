"""
Decide command for condbuild.

Answers "would this run build?" without building, tagging or pruning.
"""

from typing import Optional, Tuple

import click

from ..cli_utils import standard_command
from ..config import load_config
from ..context import RunContext
from ..outputs import write_outputs
from ..services.collaborators import Collaborators
from ..services.pipeline_service import BuildPipeline
from .common import input_options, inputs_from_options


@click.command('decide')
@input_options
@click.option('--json', 'as_json', is_flag=True, help='Print the verdict as JSON on stdout')
@standard_command
def decide_handler(
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
    as_json: bool,
):
    """
    Show whether a build would be triggered, and why.

    Runs change detection and the fallback probe, then prints the verdict.
    The triggered flag is written to GITHUB_OUTPUT when available.

    \b
    Examples:
        condbuild decide -p backend --tag-fallback prod --triggers ./backend/
    """
    options = dict(locals())
    config = load_config()
    ctx = RunContext.from_env()
    inputs = inputs_from_options(ctx, config, **options)

    pipeline = BuildPipeline(Collaborators.default(config, ctx, inputs.registry), ctx, config)
    result = pipeline.evaluate(inputs)

    outputs = result.outputs()
    write_outputs(ctx.output_file, {'triggered': outputs['triggered'], 'tags_csv': outputs['tags_csv']})

    if not as_json:
        click.echo(f"triggered={outputs['triggered']}")
        click.echo(f"reason={result.verdict.reason.value}")
        click.echo(result.verdict.reason.message, err=True)
    return {
        'image_path': inputs.image_path,
        'paths_changed': result.paths_changed,
        'fallback': result.availability.value,
        **result.verdict.to_dict(),
    }
