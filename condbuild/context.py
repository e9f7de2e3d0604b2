"""
Run context for condbuild.

Collects what the CI environment knows about the invocation: which
repository we run in, the change request being built, the default branch
and where to write step outputs.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict, Any, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunContext:
    """
    Invocation context, normally read from the GitHub Actions environment.

    Attributes:
        repository: owner/repo slug of the repository we run in
        repository_name: bare repository name
        default_branch: repository default branch, if known
        event_number: pull request number, if the event has one
        actor: user that triggered the run
        token: GitHub token used for the registry and the API
        output_file: path of the GITHUB_OUTPUT file
        summary_file: path of the GITHUB_STEP_SUMMARY file
    """

    repository: str = ""
    repository_name: str = ""
    default_branch: Optional[str] = None
    event_number: Optional[str] = None
    actor: str = ""
    token: str = ""
    output_file: Optional[str] = None
    summary_file: Optional[str] = None

    @property
    def in_actions(self) -> bool:
        return self.output_file is not None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'RunContext':
        """Build the context from environment variables and the event payload."""
        env = os.environ if environ is None else environ
        event = _load_event(env.get('GITHUB_EVENT_PATH'))

        repository = env.get('GITHUB_REPOSITORY', '')
        event_repo = event.get('repository') or {}
        repository_name = event_repo.get('name') or repository.rsplit('/', 1)[-1]

        number = event.get('number')
        if number is None:
            number = (event.get('pull_request') or {}).get('number')

        return cls(
            repository=repository,
            repository_name=repository_name,
            default_branch=event_repo.get('default_branch'),
            event_number=str(number) if number is not None else None,
            actor=env.get('GITHUB_ACTOR', ''),
            token=env.get('CONDBUILD_TOKEN') or env.get('GITHUB_TOKEN', ''),
            output_file=env.get('GITHUB_OUTPUT') or None,
            summary_file=env.get('GITHUB_STEP_SUMMARY') or None,
        )


def _load_event(event_path: Optional[str]) -> Dict[str, Any]:
    """Read the event payload; a missing or unreadable file gives {}."""
    if not event_path:
        return {}
    path = Path(event_path)
    if not path.exists():
        logger.debug(f"Event payload not found at {path}")
        return {}
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not read event payload {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def resolve_token(ctx: RunContext, config: Dict[str, Any]) -> str:
    """Token for the registry, the packages API and docker login; the environment wins over config."""
    return ctx.token or config.get('github', {}).get('token') or ''
