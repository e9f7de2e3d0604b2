"""
Step outputs for condbuild.

Writes results where the CI runner picks them up:
- GITHUB_OUTPUT: key=value step outputs (digest, triggered, tags_csv)
- GITHUB_STEP_SUMMARY: markdown summary
- workflow commands (::warning::, ::error::) on stderr
"""

import logging
import uuid
from typing import Mapping, Optional

import click
from rich.console import Console

from .context import RunContext
from .render import render_summary
from .services.pipeline_service import PipelineResult

logger = logging.getLogger(__name__)


def write_outputs(path: Optional[str], outputs: Mapping[str, str]) -> None:
    """Append outputs to the GITHUB_OUTPUT file; no-op without a path."""
    if not path:
        return
    with open(path, 'a') as f:
        for key, value in outputs.items():
            value = '' if value is None else str(value)
            if '\n' in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                f.write(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                f.write(f"{key}={value}\n")


def annotate(level: str, message: str, ctx: Optional[RunContext] = None) -> None:
    """Emit a workflow command annotation (on stderr) when running under Actions."""
    if ctx is not None and not ctx.in_actions:
        return
    click.echo(f"::{level}::{message}", err=True)


def summary_markdown(result: PipelineResult) -> str:
    triggered = result.triggered
    lines = [
        f"### Container: `{result.inputs.package.name}`",
        "",
        "| Field | Value |",
        "| --- | --- |",
        f"| Image | `{result.inputs.registry}/{result.inputs.image_path}` |",
        f"| Triggered | {'' if triggered is None else str(triggered).lower()} |",
        f"| Reason | {result.verdict.reason.value if result.verdict else ''} |",
        f"| Digest | `{result.digest}` |",
        f"| Tags | {result.inputs.tags.csv} |",
    ]
    if result.error:
        lines.append(f"| Error | {result.error} |")
    return "\n".join(lines) + "\n"


class SummaryEmitter:
    """
    Emits the end-of-run summary. Never raises, so it can run after
    any upstream failure.
    """

    def __init__(self, ctx: RunContext, console: Optional[Console] = None, pretty: bool = True):
        self.ctx = ctx
        self.console = console or Console(stderr=True)
        self.pretty = pretty

    def __call__(self, result: PipelineResult) -> None:
        outputs = result.outputs()
        self.console.print("---- Build Summary ----", highlight=False)
        self.console.print(f"digest: {outputs['digest']}", highlight=False)
        self.console.print(f"triggered: {outputs['triggered']}", highlight=False)
        self.console.print(f"tags_csv: {outputs['tags_csv']}", highlight=False)
        self.console.print("-----------------------", highlight=False)
        if self.pretty:
            render_summary(result, self.console)

        for warning in result.warnings:
            annotate("warning", warning, self.ctx)

        try:
            write_outputs(self.ctx.output_file, outputs)
            if self.ctx.summary_file:
                with open(self.ctx.summary_file, 'a') as f:
                    f.write(summary_markdown(result))
        except OSError as e:
            logger.error(f"Could not write step outputs: {e}")
