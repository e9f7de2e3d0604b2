"""
Container tool chain infrastructure for condbuild.

Thin wrappers over the command-line tools that do the heavy lifting:
- DockerBuilder: docker login, buildx builder selection, docker buildx build --push
- SyftSbomGenerator: syft SBOM documents
- CosignAttestor: cosign attest

Each wrapper owns its subprocess calls so the pipeline can be tested
with fakes.
"""

import json
import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, List, Dict, Any, Iterable, Mapping, Sequence

from ..exit_codes import BuildError, SbomError, AttestationError

logger = logging.getLogger(__name__)


def _run(cmd: List[str], timeout: Optional[int] = None, env: Optional[Dict[str, str]] = None,
         input: Optional[str] = None) -> subprocess.CompletedProcess:
    """Run a tool, capturing output. OSError/timeouts propagate to the caller."""
    logger.debug(f"Running: {' '.join(cmd)}")
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
        input=input,
    )


@dataclass
class BuildRequest:
    """Everything docker buildx needs for one image."""
    context: str
    file: str
    tags: Sequence[str]
    build_args: Sequence[str] = ()
    secrets: Sequence[str] = ()      # KEY=VALUE; values never reach argv
    cache_from: Optional[str] = None
    cache_to: Optional[str] = None
    push: bool = True


class DockerBuilder:
    """
    Builds and pushes images with docker buildx.

    Example:
        builder = DockerBuilder()
        digest = builder.build_and_push(BuildRequest("api", "api/Dockerfile", ["ghcr.io/org/api:pr1"]))
    """

    def __init__(self, docker: str = "docker", timeout: int = 3600):
        self.docker = docker
        self.timeout = timeout

    def login(self, registry: str, username: str, token: str) -> None:
        """Log in to the registry; raises BuildError on failure."""
        if not token:
            logger.debug("No token provided; skipping docker login")
            return
        try:
            result = _run(
                [self.docker, "login", registry, "--username", username or "token", "--password-stdin"],
                timeout=120,
                input=token,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise BuildError(f"docker login to {registry} failed: {e}") from e
        if result.returncode != 0:
            raise BuildError(f"docker login to {registry} failed: {result.stderr.strip()}")

    def ensure_builder(self, name: str = "condbuild") -> None:
        """
        Select a buildx builder that can export caches.

        The stock "docker" driver cannot, so a docker-container builder
        named ``name`` is selected, or created when it does not exist yet.

        Raises:
            BuildError: if buildx is missing or the builder cannot be created
        """
        try:
            inspect = _run([self.docker, "buildx", "inspect"], timeout=120)
            if inspect.returncode == 0 and _builder_driver(inspect.stdout) not in ("", "docker"):
                return
            if _run([self.docker, "buildx", "use", name], timeout=120).returncode == 0:
                logger.debug(f"Using existing buildx builder {name}")
                return
            logger.info(f"Creating buildx builder {name} (docker-container driver)")
            result = _run(
                [self.docker, "buildx", "create", "--use", "--name", name, "--driver", "docker-container"],
                timeout=300,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise BuildError(f"docker buildx is not available: {e}") from e
        if result.returncode != 0:
            raise BuildError(f"docker buildx create failed: {result.stderr.strip()}")

    def build_command(self, request: BuildRequest, metadata_file: str) -> List[str]:
        cmd = [self.docker, "buildx", "build", "--file", request.file, "--metadata-file", metadata_file]
        cmd.append("--push" if request.push else "--load")
        for tag in request.tags:
            cmd += ["--tag", tag]
        for arg in request.build_args:
            cmd += ["--build-arg", arg]
        for key in _secret_env(request.secrets):
            cmd += ["--secret", f"id={key},env={key}"]
        if request.cache_from:
            cmd += ["--cache-from", request.cache_from]
        if request.cache_to:
            cmd += ["--cache-to", request.cache_to]
        cmd.append(request.context)
        return cmd

    def build_and_push(self, request: BuildRequest) -> str:
        """
        Build and push the image.

        Returns:
            Content digest of the pushed image

        Raises:
            BuildError: if the build fails or no digest is reported
        """
        request = _without_unusable_cache(request, os.environ)
        with tempfile.TemporaryDirectory() as tmp:
            metadata_file = os.path.join(tmp, "metadata.json")
            cmd = self.build_command(request, metadata_file)
            env = dict(os.environ)
            env.update(_secret_env(request.secrets))
            try:
                result = _run(cmd, timeout=self.timeout, env=env)
            except (OSError, subprocess.TimeoutExpired) as e:
                raise BuildError(f"docker buildx failed to run: {e}") from e

            if result.returncode != 0:
                tail = "\n".join(result.stderr.strip().splitlines()[-20:])
                raise BuildError(f"docker buildx build failed (exit {result.returncode}):\n{tail}")

            digest = _read_digest(metadata_file)
        if not digest and request.push:
            raise BuildError("docker buildx did not report an image digest")
        logger.info(f"Pushed {request.tags[0] if request.tags else request.context} ({digest})")
        return digest


def _secret_env(secrets: Iterable[str]) -> Dict[str, str]:
    """Split KEY=VALUE secret lines into an environment mapping."""
    env = {}
    for line in secrets:
        if '=' not in line:
            logger.warning("Ignoring secret without '=' separator")
            continue
        key, value = line.split('=', 1)
        env[key.strip()] = value
    return env


def _builder_driver(inspect_output: str) -> str:
    """Driver name from `docker buildx inspect` output, e.g. "docker-container"."""
    for line in (inspect_output or "").splitlines():
        key, _, value = line.partition(':')
        if key.strip().lower() == 'driver':
            return value.strip().lower()
    return ""


def _gha_cache_available(environ: Mapping[str, str]) -> bool:
    # buildx reads these from the environment of the runner step
    return bool(environ.get('ACTIONS_RUNTIME_TOKEN')
                and (environ.get('ACTIONS_CACHE_URL') or environ.get('ACTIONS_RESULTS_URL')))


def _without_unusable_cache(request: BuildRequest, environ: Mapping[str, str]) -> BuildRequest:
    """Drop type=gha cache settings when the Actions cache service is unreachable."""
    if _gha_cache_available(environ):
        return request
    cache_from = None if request.cache_from and 'type=gha' in request.cache_from else request.cache_from
    cache_to = None if request.cache_to and 'type=gha' in request.cache_to else request.cache_to
    if (cache_from, cache_to) != (request.cache_from, request.cache_to):
        logger.debug("Actions cache service not available; building without the gha cache")
    return replace(request, cache_from=cache_from, cache_to=cache_to)


def _read_digest(metadata_file: str) -> str:
    try:
        with open(metadata_file, 'r') as f:
            metadata = json.load(f)
    except (OSError, json.JSONDecodeError):
        return ""
    return metadata.get("containerimage.digest", "")


class SyftSbomGenerator:
    """Generates SBOM documents for a pushed image with syft."""

    def __init__(self, syft: str = "syft", formats: Sequence[str] = ("cyclonedx-json", "spdx-json"),
                 timeout: int = 900):
        self.syft = syft
        self.formats = list(formats)
        self.timeout = timeout

    def generate(self, image_ref: str, package: str, out_dir: str) -> List[str]:
        """
        Write one SBOM per format to out_dir/<package>-<format>.json.

        Returns:
            Paths written

        Raises:
            SbomError: if syft is missing or fails
        """
        directory = Path(out_dir)
        directory.mkdir(parents=True, exist_ok=True)
        written = []
        for fmt in self.formats:
            path = directory / f"{package}-{fmt.replace('-json', '')}.json"
            try:
                result = _run([self.syft, "scan", image_ref, "-o", fmt], timeout=self.timeout)
            except (OSError, subprocess.TimeoutExpired) as e:
                raise SbomError(f"syft failed to run: {e}") from e
            if result.returncode != 0:
                raise SbomError(f"syft {fmt} failed: {result.stderr.strip()}")
            path.write_text(result.stdout)
            written.append(str(path))
        return written


class CosignAttestor:
    """Issues in-toto attestations with cosign (keyless)."""

    def __init__(self, cosign: str = "cosign", timeout: int = 300):
        self.cosign = cosign
        self.timeout = timeout

    def attest(self, subject: str, digest: str, predicate_type: str, predicate: Dict[str, Any]) -> None:
        """
        Attest subject@digest.

        Raises:
            AttestationError: if cosign is missing or refuses (typically
                missing id-token permissions)
        """
        with tempfile.NamedTemporaryFile('w', suffix='.json', delete=False) as f:
            json.dump(predicate, f)
            predicate_path = f.name
        try:
            result = _run(
                [self.cosign, "attest", "--yes", "--type", predicate_type,
                 "--predicate", predicate_path, f"{subject}@{digest}"],
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise AttestationError(f"cosign failed to run: {e}") from e
        finally:
            os.unlink(predicate_path)
        if result.returncode != 0:
            raise AttestationError(f"cosign attest failed: {result.stderr.strip()}")
