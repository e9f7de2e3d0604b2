"""
Options and helpers shared by the condbuild commands.
"""

from typing import Dict, Any

import click

from ..context import RunContext, resolve_token
from ..infra.github_client import GitHubClient
from ..inputs import BuildInputs, normalize_inputs


def input_options(func):
    """Options that describe the package and how to decide on a build."""
    options = [
        click.option('--package', '-p', required=True, help='Package name; e.g. backend, frontend'),
        click.option('--tags', 'tags', multiple=True,
                     help='Tag(s) to publish; repeatable or multiline. Defaults to the pull request number'),
        click.option('--tag', 'tag', hidden=True, help="Deprecated; use --tags"),
        click.option('--build-context', help='Build context (default: <package>)'),
        click.option('--build-file', help='Dockerfile path (default: <package>/Dockerfile)'),
        click.option('--tag-fallback', help='Existing tag to reuse when no build is needed; e.g. prod, test'),
        click.option('--triggers', multiple=True,
                     help="Paths that trigger a build; repeatable or \"('./backend/' './frontend/')\""),
        click.option('--diff-branch', help='Branch to diff against (default: repository default branch)'),
        click.option('--repository', help='Non-default repository to build from (default: current repository)'),
        click.option('--registry', help='Registry host (default from config: ghcr.io)'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def inputs_from_options(ctx: RunContext, config: Dict[str, Any], **kwargs) -> BuildInputs:
    """Normalize click option values; unknown keys are ignored."""
    return normalize_inputs(
        ctx,
        config,
        package=kwargs.get('package'),
        tags=kwargs.get('tags'),
        tag=kwargs.get('tag'),
        build_context=kwargs.get('build_context'),
        build_file=kwargs.get('build_file'),
        tag_fallback=kwargs.get('tag_fallback'),
        triggers=kwargs.get('triggers') or None,
        diff_branch=kwargs.get('diff_branch'),
        keep_versions=kwargs.get('keep_versions'),
        keep_regex=kwargs.get('keep_regex'),
        repository=kwargs.get('repository'),
        sbom=kwargs.get('sbom', True),
        build_args=kwargs.get('build_args'),
        secrets=kwargs.get('secrets'),
        registry=kwargs.get('registry'),
    )


def github_client(config: Dict[str, Any], ctx: RunContext) -> GitHubClient:
    github_cfg = config.get('github', {})
    rate_cfg = github_cfg.get('rate_limit', {})
    return GitHubClient(
        token=resolve_token(ctx, config) or None,
        api_url=github_cfg.get('api_url', 'https://api.github.com'),
        max_retries=rate_cfg.get('max_retries', 3),
        max_delay=rate_cfg.get('max_delay_seconds', 60),
    )
