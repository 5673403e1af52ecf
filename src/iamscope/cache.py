"""Request-scoped role cache.

One ``RoleCache`` lives for exactly one resolution call: the service creates
it, the resolver and aggregator borrow it, and it is dropped when the call
returns. It is never shared across calls or persisted.

Keys are always classifier-normalized, so ``" roles/viewer"`` and
``"roles/viewer"`` share one entry.
"""

from __future__ import annotations

from typing import Iterator

from .identifiers import RoleIdentifier, classify
from .models import RoleDetails


def _key(role: RoleIdentifier | str) -> str:
    if isinstance(role, RoleIdentifier):
        return role.canonical
    return classify(role).canonical


class RoleCache:
    """Mapping of role identifier → resolved ``RoleDetails``.

    Writes are last-write-wins; concurrent writers under asyncio always store
    identical details for the same key.
    """

    __slots__ = ("_entries", "hits", "misses")

    def __init__(self) -> None:
        self._entries: dict[str, RoleDetails] = {}
        self.hits = 0
        self.misses = 0

    def get(self, role: RoleIdentifier | str) -> RoleDetails | None:
        details = self._entries.get(_key(role))
        if details is None:
            self.misses += 1
        else:
            self.hits += 1
        return details

    def put(self, role: RoleIdentifier | str, details: RoleDetails) -> None:
        self._entries[_key(role)] = details

    def __contains__(self, role: object) -> bool:
        if not isinstance(role, (RoleIdentifier, str)):
            return False
        return _key(role) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"RoleCache(entries={len(self._entries)}, hits={self.hits}, misses={self.misses})"


__all__ = ["RoleCache"]
