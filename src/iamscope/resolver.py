"""Role resolution: one role identifier → its direct ``RoleDetails``.

Lookup strategy by ``RoleKind``:
- ``PREDEFINED``: fetch by name; keep reported included roles.
- ``PROJECT_CUSTOM`` / ``ORGANIZATION_CUSTOM``: fetch by composed name;
  included roles are always dropped (custom roles do not nest).
- ``UNRECOGNIZED``: empty details, no provider call.

``UpstreamNotFound`` degrades to empty details. Any other failure propagates
as a ``ResolutionError``.
"""

from __future__ import annotations

import logging

from .cache import RoleCache
from .exceptions import InternalResolutionError, ResolutionError, UpstreamNotFound
from .identifiers import RoleIdentifier, RoleKind, classify
from .models import EMPTY_ROLE_DETAILS, RoleDetails
from .providers import RoleMetadataProvider

logger = logging.getLogger(__name__)


def qualified_name(role: RoleIdentifier) -> str:
    """Name the role catalog is queried with."""
    if role.kind is RoleKind.PROJECT_CUSTOM:
        return f"projects/{role.parent_id}/roles/{role.role_id}"
    if role.kind is RoleKind.ORGANIZATION_CUSTOM:
        return f"organizations/{role.parent_id}/roles/{role.role_id}"
    return role.canonical


class RoleResolver:
    """Resolves role identifiers through a ``RoleMetadataProvider``.

    The resolver holds no per-call state; the ``RoleCache`` is passed in by
    the caller for each lookup.
    """

    def __init__(self, provider: RoleMetadataProvider) -> None:
        self._provider = provider

    async def resolve(self, role: RoleIdentifier | str, cache: RoleCache | None = None) -> RoleDetails:
        """Return direct permissions and included roles of ``role``.

        Raises:
            ResolutionError: on any upstream failure other than not-found.
        """
        if not isinstance(role, RoleIdentifier):
            role = classify(role)

        if cache is not None:
            cached = cache.get(role)
            if cached is not None:
                return cached

        details = await self._fetch(role)

        if cache is not None:
            cache.put(role, details)
        return details

    async def _fetch(self, role: RoleIdentifier) -> RoleDetails:
        if role.kind is RoleKind.UNRECOGNIZED:
            logger.warning(
                "Could not determine type for role: %s. Assuming no permissions or included roles.",
                role.canonical,
            )
            return EMPTY_ROLE_DETAILS

        name = qualified_name(role)
        try:
            details = await self._provider.get_role_details(name)
        except UpstreamNotFound:
            logger.warning("Role %s not found upstream; treating it as granting no permissions", name)
            return EMPTY_ROLE_DETAILS
        except ResolutionError as e:
            logger.error("Error fetching details for role %s: [%s] %s", name, e.code, e.message)
            raise
        except Exception as e:
            logger.exception("Unexpected error fetching details for role %s", name)
            raise InternalResolutionError(f"Failed to resolve role {name}: {e}", role=name) from e

        if role.is_custom:
            if details.included_roles:
                logger.debug("Ignoring included roles reported for custom role %s", name)
            return details.without_included_roles()
        return details


__all__ = ["RoleResolver", "qualified_name"]
