"""
Infrastructure layer for condbuild.

Contains abstractions for external systems:
- GitClient / PathTriggerOracle: change detection against a diff branch
- RegistryClient: manifest probe and retag over the registry v2 API
- GitHubClient: GitHub Packages version listing and deletion
- DockerBuilder, SyftSbomGenerator, CosignAttestor: build tool chain

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, PathTriggerOracle
from .registry_client import RegistryClient
from .github_client import GitHubClient, RateLimitStatus
from .docker_client import BuildRequest, DockerBuilder, SyftSbomGenerator, CosignAttestor

__all__ = [
    'GitClient',
    'PathTriggerOracle',
    'RegistryClient',
    'GitHubClient',
    'RateLimitStatus',
    'BuildRequest',
    'DockerBuilder',
    'SyftSbomGenerator',
    'CosignAttestor',
]
