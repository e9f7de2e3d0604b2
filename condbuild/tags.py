"""
Tag resolution for condbuild.

Turns the raw multiline ``tags`` input into registry-ready tags:

    "pr42\\n\\ndemo"  ->  ghcr.io/org/platform/worker:pr42,ghcr.io/org/platform/worker:demo
"""

from typing import Iterable, List, Union

from .domain.tag import ResolvedTags


def split_tags(raw: Union[str, Iterable[str], None]) -> List[str]:
    """
    Split a raw tag specification into entries, dropping blank lines.

    Accepts a multiline string or an iterable of strings (each of which
    may itself be multiline, as repeated CLI options are).
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]

    entries = []
    for chunk in raw:
        for line in str(chunk).splitlines():
            line = line.strip()
            if line:
                entries.append(line)
    return entries


def tag_prefix(registry: str, image_path: str) -> str:
    return f"{registry}/{image_path}:".lower()


def resolve_tags(raw: Union[str, Iterable[str], None], registry: str, image_path: str) -> ResolvedTags:
    """
    Resolve raw tags against ``registry/image_path``.

    Entries that already carry the prefix are kept as-is, so resolving an
    already-resolved list is a no-op. Order is preserved and duplicates
    are left for the registry to handle. An empty input gives an empty
    (but valid) ResolvedTags.

    Args:
        raw: Multiline string or iterable of tag strings
        registry: Registry host, e.g. "ghcr.io"
        image_path: Lower-cased image path, e.g. "org/platform/worker"

    Returns:
        ResolvedTags
    """
    prefix = tag_prefix(registry, image_path)
    resolved = []
    for entry in split_tags(raw):
        entry = entry.lower()
        if not entry.startswith(prefix):
            entry = prefix + entry
        resolved.append(entry)
    return ResolvedTags(prefix=prefix, tags=tuple(resolved))
