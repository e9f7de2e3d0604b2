"""
External collaborators used by the build pipeline.

Every side effect the pipeline has goes through one of these
capabilities. The real implementations live in condbuild.infra;
tests pass fakes.
"""

from dataclasses import dataclass
from typing import Protocol, Iterable, List, Dict, Any, Optional

from ..context import RunContext, resolve_token
from ..domain.verdict import FallbackAvailability
from ..infra.docker_client import BuildRequest, DockerBuilder, SyftSbomGenerator, CosignAttestor
from ..infra.git_client import GitClient, PathTriggerOracle
from ..infra.registry_client import RegistryClient


class TriggerOracle(Protocol):
    def paths_changed(self, watched: Iterable[str], diff_branch: str) -> bool: ...


class Registry(Protocol):
    def probe(self, image_path: str, tag: str) -> FallbackAvailability: ...

    def retag(self, image_path: str, source_tag: str, target_tags: Iterable[str]) -> str: ...


class Builder(Protocol):
    def login(self, registry: str, username: str, token: str) -> None: ...

    def ensure_builder(self, name: str) -> None: ...

    def build_and_push(self, request: BuildRequest) -> str: ...


class SbomGenerator(Protocol):
    def generate(self, image_ref: str, package: str, out_dir: str) -> List[str]: ...


class Attestor(Protocol):
    def attest(self, subject: str, digest: str, predicate_type: str, predicate: Dict[str, Any]) -> None: ...


@dataclass
class Collaborators:
    """The capabilities one pipeline run needs."""

    oracle: TriggerOracle
    registry: Registry
    builder: Builder
    sbom: Optional[SbomGenerator] = None
    attestor: Optional[Attestor] = None

    @classmethod
    def default(cls, config: Dict[str, Any], ctx: RunContext, registry: str = "") -> 'Collaborators':
        """Wire the real clients from config and the run context."""
        git_cfg = config.get('git', {})
        registry_cfg = config.get('registry', {})
        build_cfg = config.get('build', {})
        sbom_cfg = config.get('sbom', {})

        token = resolve_token(ctx, config)
        return cls(
            oracle=PathTriggerOracle(GitClient(
                remote=git_cfg.get('remote', 'origin'),
                timeout=git_cfg.get('timeout_seconds', 60),
            )),
            registry=RegistryClient(
                registry or registry_cfg.get('host', 'ghcr.io'),
                token=token,
                timeout=registry_cfg.get('probe_timeout_seconds', 30),
            ),
            builder=DockerBuilder(timeout=build_cfg.get('timeout_seconds', 3600)),
            sbom=SyftSbomGenerator(formats=sbom_cfg.get('formats', ["cyclonedx-json", "spdx-json"])),
            attestor=CosignAttestor(),
        )
