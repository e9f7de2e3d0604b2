"""
Resolved tag domain object for condbuild.

Resolved tags are fully-qualified and registry-ready:
    ghcr.io/org/platform/worker:pr42

They keep the input order and are not deduplicated.
"""

from dataclasses import dataclass
from typing import Tuple, List, Dict, Any


@dataclass(frozen=True)
class ResolvedTags:
    """
    Ordered, lower-cased, fully-qualified tags for one image path.

    Attributes:
        prefix: "registry/image_path:" shared by every tag
        tags: Fully-qualified tags in input order
    """

    prefix: str
    tags: Tuple[str, ...] = ()

    @property
    def csv(self) -> str:
        return ",".join(self.tags)

    @property
    def names(self) -> List[str]:
        """Bare tag names (the part after the prefix)."""
        return [t[len(self.prefix):] if t.startswith(self.prefix) else t for t in self.tags]

    def __iter__(self):
        return iter(self.tags)

    def __len__(self) -> int:
        return len(self.tags)

    def __bool__(self) -> bool:
        return bool(self.tags)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tags': list(self.tags),
            'tags_csv': self.csv,
        }
