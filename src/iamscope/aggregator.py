"""Effective-permission aggregation over the role inclusion graph.

Every reachable role is resolved exactly once. A role is marked visited
before its details are awaited, so cycles (A → B → A) terminate and no role
is fetched twice even when a worklist layer is fetched in parallel.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Iterable

from .cache import RoleCache
from .identifiers import RoleIdentifier, classify
from .models import RoleDetails
from .resolver import RoleResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Expansion:
    """Result of expanding a set of roles.

    Attributes:
        permissions: Union of direct permissions of every visited role.
        roles: Every role reached, including the starting roles.
    """

    permissions: frozenset[str]
    roles: frozenset[RoleIdentifier]


def _identifiers(roles: Iterable[RoleIdentifier | str]) -> list[RoleIdentifier]:
    seen: dict[RoleIdentifier, None] = {}
    for role in roles:
        seen.setdefault(role if isinstance(role, RoleIdentifier) else classify(role), None)
    return list(seen)


class PermissionAggregator:
    """Worklist traversal of the role inclusion graph.

    Args:
        resolver: Resolves one role to its direct details.
        concurrency: Maximum in-flight role fetches. ``1`` walks a FIFO
            worklist one role at a time; higher values fetch each worklist
            layer in parallel.
    """

    def __init__(self, resolver: RoleResolver, concurrency: int = 1) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._resolver = resolver
        self._concurrency = concurrency

    async def resolve_effective_permissions(
        self,
        initial_roles: Iterable[RoleIdentifier | str],
        cache: RoleCache,
    ) -> frozenset[str]:
        """Union of all permissions reachable from ``initial_roles``.

        Raises:
            ResolutionError: propagated from the resolver; no partial set is returned.
        """
        expansion = await self.expand(initial_roles, cache)
        return expansion.permissions

    async def expand(
        self,
        initial_roles: Iterable[RoleIdentifier | str],
        cache: RoleCache,
    ) -> Expansion:
        """Expand ``initial_roles`` into visited roles and accumulated permissions."""
        roots = _identifiers(initial_roles)
        if self._concurrency == 1:
            expansion = await self._expand_sequential(roots, cache)
        else:
            expansion = await self._expand_layered(roots, cache)

        logger.debug(
            "Expanded %d role(s) into %d role(s) and %d permission(s)",
            len(roots),
            len(expansion.roles),
            len(expansion.permissions),
        )
        return expansion

    async def _expand_sequential(self, roots: list[RoleIdentifier], cache: RoleCache) -> Expansion:
        visited: set[RoleIdentifier] = set()
        accumulated: set[str] = set()
        frontier: deque[RoleIdentifier] = deque(roots)

        while frontier:
            role = frontier.popleft()
            if role in visited:
                continue
            visited.add(role)

            details = await self._resolver.resolve(role, cache)
            accumulated.update(details.permissions)
            frontier.extend(r for r in details.included_roles if r not in visited)

        return Expansion(permissions=frozenset(accumulated), roles=frozenset(visited))

    async def _expand_layered(self, roots: list[RoleIdentifier], cache: RoleCache) -> Expansion:
        visited: set[RoleIdentifier] = set()
        accumulated: set[str] = set()
        layer = roots
        semaphore = asyncio.Semaphore(self._concurrency)

        while layer:
            batch: list[RoleIdentifier] = []
            for role in layer:
                if role in visited:
                    continue
                visited.add(role)
                batch.append(role)

            results = await self._resolve_batch(batch, cache, semaphore)

            next_layer: list[RoleIdentifier] = []
            for details in results:
                accumulated.update(details.permissions)
                next_layer.extend(r for r in details.included_roles if r not in visited)
            layer = next_layer

        return Expansion(permissions=frozenset(accumulated), roles=frozenset(visited))

    async def _resolve_batch(
        self,
        batch: list[RoleIdentifier],
        cache: RoleCache,
        semaphore: asyncio.Semaphore,
    ) -> list[RoleDetails]:
        async def bounded(role: RoleIdentifier) -> RoleDetails:
            async with semaphore:
                return await self._resolver.resolve(role, cache)

        tasks = [asyncio.ensure_future(bounded(role)) for role in batch]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # One failure (or caller cancellation) abandons the whole call.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


__all__ = ["Expansion", "PermissionAggregator"]
