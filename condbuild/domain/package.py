"""
Package domain object for condbuild.

A package is the unit being built: one directory of a monorepo with its
own Dockerfile, published as one image under the repository's namespace.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass(frozen=True)
class PackageSpec:
    """
    Identifies the package being built.

    Examples:
        PackageSpec("api", "org/api").image_path("api")              -> "org/api"
        PackageSpec("worker", "org/platform").image_path("platform") -> "org/platform/worker"

    Attributes:
        name: Package name, e.g. "backend"
        repository_slug: owner/repo of the invoking repository
        build_context: Docker build context (defaults to name)
        build_file: Dockerfile path (defaults to <name>/Dockerfile)
    """

    name: str
    repository_slug: str
    build_context: Optional[str] = None
    build_file: Optional[str] = None

    @property
    def context_path(self) -> str:
        return self.build_context or self.name

    @property
    def dockerfile_path(self) -> str:
        return self.build_file or f"{self.name}/Dockerfile"

    @property
    def owner(self) -> str:
        return self.repository_slug.split('/', 1)[0]

    def image_path(self, repository_name: str) -> str:
        """
        Registry path component for this package, always lower-cased.

        A package named like the repository itself gets the short form.
        """
        if self.name.lower() == repository_name.lower():
            path = self.repository_slug
        else:
            path = f"{self.repository_slug}/{self.name}"
        return path.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'repository': self.repository_slug,
            'build_context': self.context_path,
            'build_file': self.dockerfile_path,
        }
