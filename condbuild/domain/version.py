"""
Package version domain objects for condbuild.

A published container package accumulates versions (one per pushed
manifest). Each version carries zero or more tags.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, List, Dict, Any, FrozenSet


@dataclass(frozen=True)
class VersionRecord:
    """One published version of a container package."""

    id: int
    name: str = ""                      # Usually the manifest digest
    tags: Tuple[str, ...] = ()
    created_at: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'VersionRecord':
        """Create from a GitHub Packages API version object."""
        container = (data.get('metadata') or {}).get('container') or {}
        return cls(
            id=int(data['id']),
            name=data.get('name', ''),
            tags=tuple(container.get('tags') or ()),
            created_at=data.get('created_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'tags': list(self.tags),
            'created_at': self.created_at,
        }


@dataclass(frozen=True)
class RetentionRequest:
    """What to keep for one package."""

    package_name: str
    keep_count: Optional[int] = None
    ignore_pattern: str = ""

    @property
    def enabled(self) -> bool:
        return self.keep_count is not None


@dataclass
class RetentionDecision:
    """Versions split by what the retention policy does with them."""

    delete: FrozenSet[int] = frozenset()
    kept: List[int] = field(default_factory=list)
    protected: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'delete': sorted(self.delete),
            'kept': self.kept,
            'protected': self.protected,
        }
