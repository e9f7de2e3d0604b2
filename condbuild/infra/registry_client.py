"""
Container registry client infrastructure for condbuild.

Talks to the OCI distribution (registry v2) HTTP API:
- probe(): does a manifest exist at image:tag?
- retag(): publish an existing manifest under more tags

Authentication uses a bearer token derived from the GitHub token, which is
how ghcr.io accepts personal and workflow tokens.
"""

import base64
import logging
from typing import Optional, Iterable, List, Tuple

import requests

from ..domain.verdict import FallbackAvailability
from ..exit_codes import APIError, ProbeError

logger = logging.getLogger(__name__)

# Manifest media types, multi-arch indexes first
MANIFEST_MEDIA_TYPES = [
    "application/vnd.oci.image.index.v1+json",
    "application/vnd.docker.distribution.manifest.list.v2+json",
    "application/vnd.oci.image.manifest.v1+json",
    "application/vnd.docker.distribution.manifest.v2+json",
]


class RegistryClient:
    """
    Client for one container registry.

    Example:
        client = RegistryClient("ghcr.io", token=os.environ["GITHUB_TOKEN"])
        if client.probe("org/platform/worker", "prod").usable:
            client.retag("org/platform/worker", "prod", ["pr42"])
    """

    def __init__(self, registry: str = "ghcr.io", token: Optional[str] = None, timeout: int = 30):
        """
        Initialize RegistryClient.

        Args:
            registry: Registry host, e.g. "ghcr.io"
            token: GitHub token (or registry bearer token)
            timeout: HTTP request timeout in seconds
        """
        self.registry = registry
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Accept': ", ".join(MANIFEST_MEDIA_TYPES),
            'User-Agent': 'condbuild',
        })
        if token:
            encoded = base64.b64encode(token.encode()).decode()
            self.session.headers['Authorization'] = f'Bearer {encoded}'

    def _manifest_url(self, image_path: str, reference: str) -> str:
        return f"https://{self.registry}/v2/{image_path}/manifests/{reference}"

    def check_manifest(self, image_path: str, tag: str) -> bool:
        """
        Check manifest existence.

        Returns:
            True if the manifest exists, False if the registry says it does not

        Raises:
            ProbeError: network failure, timeout, or an ambiguous response
        """
        url = self._manifest_url(image_path, tag)
        try:
            response = self.session.head(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProbeError(f"Manifest check failed for {image_path}:{tag}: {e}") from e

        if response.status_code == 200:
            if not response.headers.get('Docker-Content-Digest'):
                raise ProbeError(f"Registry returned 200 without a digest for {image_path}:{tag}")
            return True
        if response.status_code == 404:
            return False
        raise ProbeError(f"Unexpected status {response.status_code} checking {image_path}:{tag}")

    def probe(self, image_path: str, tag: str) -> FallbackAvailability:
        """
        Probe for the fallback manifest.

        An empty tag is UNAVAILABLE without touching the network. Probe
        errors are logged and reported as UNKNOWN, never raised.
        """
        if not tag:
            return FallbackAvailability.UNAVAILABLE
        try:
            found = self.check_manifest(image_path, tag)
        except ProbeError as e:
            logger.warning(f"{e}; treating fallback as unavailable")
            return FallbackAvailability.UNKNOWN
        if found:
            logger.info(f"Fallback {self.registry}/{image_path}:{tag} found")
            return FallbackAvailability.AVAILABLE
        logger.info(f"Fallback {self.registry}/{image_path}:{tag} not found")
        return FallbackAvailability.UNAVAILABLE

    def get_manifest(self, image_path: str, reference: str) -> Tuple[bytes, str, str]:
        """
        Fetch a manifest.

        Returns:
            Tuple of (raw bytes, content type, digest)

        Raises:
            APIError: if the manifest cannot be fetched
        """
        url = self._manifest_url(image_path, reference)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise APIError(f"Could not fetch manifest {image_path}:{reference}: {e}") from e

        content_type = response.headers.get('Content-Type', MANIFEST_MEDIA_TYPES[-1])
        digest = response.headers.get('Docker-Content-Digest', '')
        return response.content, content_type, digest

    def put_manifest(self, image_path: str, reference: str, body: bytes, content_type: str) -> str:
        """Upload a manifest under a tag; returns the digest the registry reports."""
        url = self._manifest_url(image_path, reference)
        try:
            response = self.session.put(
                url,
                data=body,
                headers={'Content-Type': content_type},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise APIError(f"Could not tag {image_path}:{reference}: {e}") from e
        return response.headers.get('Docker-Content-Digest', '')

    def retag(self, image_path: str, source_tag: str, target_tags: Iterable[str]) -> str:
        """
        Publish the manifest at source_tag under each target tag.

        The manifest bytes are re-uploaded unchanged, so every target
        points at the same digest as the source.

        Returns:
            Digest of the reused manifest

        Raises:
            APIError: if the source cannot be read or any target fails
        """
        targets: List[str] = [t for t in target_tags if t]
        body, content_type, digest = self.get_manifest(image_path, source_tag)
        for target in targets:
            if target == source_tag:
                continue
            self.put_manifest(image_path, target, body, content_type)
            logger.info(f"Tagged {self.registry}/{image_path}:{source_tag} as {target}")
        return digest
