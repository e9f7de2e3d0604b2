"""
Build pipeline service for condbuild.

Runs one package through the whole flow:

    inputs -> (trigger oracle || fallback probe) -> decide -> build or retag

and emits a summary at the end whether or not a step failed.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Any, List, Optional, Tuple

from ..context import RunContext, resolve_token
from ..decision import decide
from ..domain.verdict import BuildVerdict, FallbackAvailability
from ..exit_codes import ProbeError, SbomError, AttestationError, TagResolutionError
from ..infra.docker_client import BuildRequest
from ..inputs import BuildInputs
from .collaborators import Collaborators

logger = logging.getLogger(__name__)

ATTESTATION_WARNING = (
    "Attestation skipped due to missing id-token:write and attestations:write "
    "permissions. Please update workflow permissions."
)


def sbom_directory(base: str, package: str) -> str:
    """Per-package SBOM artifact directory, e.g. sboms/worker."""
    return os.path.join(base, package)


@dataclass
class PipelineResult:
    """What happened during one pipeline run."""
    inputs: BuildInputs
    paths_changed: Optional[bool] = None
    availability: Optional[FallbackAvailability] = None
    verdict: Optional[BuildVerdict] = None
    digest: str = ""
    reused_digest: str = ""
    sbom_files: List[str] = field(default_factory=list)
    attestation: str = "skipped"        # issued, failed or skipped
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def triggered(self) -> Optional[bool]:
        return self.verdict.triggered if self.verdict else None

    def outputs(self) -> Dict[str, str]:
        """Step outputs, as strings."""
        triggered = self.triggered
        return {
            'digest': self.digest,
            'triggered': '' if triggered is None else str(triggered).lower(),
            'tags_csv': self.inputs.tags.csv,
            'image_path': self.inputs.image_path,
        }

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'package': self.inputs.package.name,
            'image_path': self.inputs.image_path,
            'tags': list(self.inputs.tags),
            'tags_csv': self.inputs.tags.csv,
            'paths_changed': self.paths_changed,
            'fallback': self.availability.value if self.availability else None,
            'triggered': self.triggered,
            'reason': self.verdict.reason.value if self.verdict else None,
            'digest': self.digest,
            'attestation': self.attestation,
        }
        if self.reused_digest:
            result['reused_digest'] = self.reused_digest
        if self.sbom_files:
            result['sbom_files'] = self.sbom_files
        if self.warnings:
            result['warnings'] = self.warnings
        if self.error:
            result['error'] = self.error
        return result


class BuildPipeline:
    """
    Decision plus dispatch for one package.

    Example:
        pipeline = BuildPipeline(Collaborators.default(config, ctx), ctx, config)
        result = pipeline.run(inputs)
        print(result.outputs())
    """

    def __init__(
        self,
        collaborators: Collaborators,
        ctx: RunContext,
        config: Optional[Dict[str, Any]] = None,
        emit_summary: Optional[Callable[[PipelineResult], None]] = None,
    ):
        """
        Initialize BuildPipeline.

        Args:
            collaborators: External capabilities
            ctx: Run context (credentials, repository name)
            config: Configuration dict
            emit_summary: Called with the result after every run, even a failed one
        """
        self.collab = collaborators
        self.ctx = ctx
        self.config = config or {}
        self.emit_summary = emit_summary

    def evaluate(self, inputs: BuildInputs, result: Optional[PipelineResult] = None) -> PipelineResult:
        """Run the oracle and the probe, then decide. No dispatch."""
        result = result or PipelineResult(inputs=inputs)
        result.paths_changed, result.availability = self._gather(inputs)
        result.verdict = decide(
            paths_changed=result.paths_changed,
            repository_override=inputs.repository_override,
            fallback_tag_provided=bool(inputs.fallback_tag),
            fallback_available=result.availability,
        )
        logger.info(result.verdict.reason.message)
        return result

    def run(self, inputs: BuildInputs) -> PipelineResult:
        """
        Decide and dispatch.

        Raises:
            BuildError: build/push failed (no fallback to reuse afterwards)
            TagResolutionError: a build was required but no tags resolved
            APIError: retagging the fallback failed
        """
        result = PipelineResult(inputs=inputs)
        try:
            self.evaluate(inputs, result)
            if result.verdict.triggered:
                self._build(inputs, result)
            else:
                self._reuse(inputs, result)
            return result
        except Exception as e:
            result.error = str(e)
            raise
        finally:
            if self.emit_summary:
                self.emit_summary(result)

    def _gather(self, inputs: BuildInputs) -> Tuple[bool, FallbackAvailability]:
        # Independent lookups; the decision waits for both
        with ThreadPoolExecutor(max_workers=2) as pool:
            diff_future = pool.submit(self.collab.oracle.paths_changed, inputs.triggers, inputs.diff_branch)
            probe_future = pool.submit(self._probe, inputs)
            return diff_future.result(), probe_future.result()

    def _probe(self, inputs: BuildInputs) -> FallbackAvailability:
        if not inputs.fallback_tag:
            return FallbackAvailability.UNAVAILABLE
        try:
            return self.collab.registry.probe(inputs.image_path, inputs.fallback_tag)
        except ProbeError as e:
            logger.warning(f"Fallback probe failed: {e}")
            return FallbackAvailability.UNKNOWN

    def _reuse(self, inputs: BuildInputs, result: PipelineResult) -> None:
        targets = inputs.tags.names
        if not targets:
            result.warnings.append("No tags resolved; nothing to retag")
            logger.warning(result.warnings[-1])
            return
        result.reused_digest = self.collab.registry.retag(inputs.image_path, inputs.fallback_tag, targets)
        logger.info(f"Reused {inputs.fallback_ref} as {inputs.tags.csv}")

    def _build(self, inputs: BuildInputs, result: PipelineResult) -> None:
        if not inputs.tags:
            raise TagResolutionError()

        build_cfg = self.config.get('build', {})
        self.collab.builder.login(inputs.registry, self.ctx.actor, resolve_token(self.ctx, self.config))
        self.collab.builder.ensure_builder(build_cfg.get('builder', 'condbuild'))
        request = BuildRequest(
            context=inputs.package.context_path,
            file=inputs.package.dockerfile_path,
            tags=list(inputs.tags),
            build_args=inputs.build_args,
            secrets=inputs.secrets,
            cache_from=build_cfg.get('cache_from'),
            cache_to=build_cfg.get('cache_to'),
            push=build_cfg.get('push', True),
        )
        result.digest = self.collab.builder.build_and_push(request)

        image_ref = f"{inputs.registry}/{inputs.image_path}@{result.digest}"
        self._generate_sbom(inputs, result, image_ref)
        self._attest(inputs, result)

    def _generate_sbom(self, inputs: BuildInputs, result: PipelineResult, image_ref: str) -> None:
        sbom_cfg = self.config.get('sbom', {})
        if not inputs.sbom or not sbom_cfg.get('enabled', True) or self.collab.sbom is None:
            return
        out_dir = sbom_directory(sbom_cfg.get('directory', 'sboms'), inputs.package.name)
        try:
            result.sbom_files = self.collab.sbom.generate(image_ref, inputs.package.name, out_dir)
        except SbomError as e:
            result.warnings.append(f"SBOM generation failed: {e}")
            logger.warning(result.warnings[-1])

    def _attest(self, inputs: BuildInputs, result: PipelineResult) -> None:
        att_cfg = self.config.get('attestation', {})
        if not att_cfg.get('enabled', True) or self.collab.attestor is None:
            return
        repo_name = self.ctx.repository_name or inputs.image_path.split('/')[1]
        try:
            self.collab.attestor.attest(
                subject=f"{inputs.registry}/{inputs.image_path}",
                digest=result.digest,
                predicate_type=att_cfg.get('predicate_type', 'https://in-toto.io/attestation/release/v0.1'),
                predicate={'purl': f"pkg:oci/{repo_name}/{inputs.package.name}".lower()},
            )
            result.attestation = "issued"
        except AttestationError as e:
            logger.debug(f"Attestation error: {e}")
            result.attestation = "failed"
            result.warnings.append(ATTESTATION_WARNING)
            logger.warning(ATTESTATION_WARNING)
