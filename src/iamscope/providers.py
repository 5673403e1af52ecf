"""Collaborator contracts for policy and role-catalog lookups.

Provides:
- ``PolicyProvider``: ``get_policy(resource_id) -> Policy``.
- ``RoleMetadataProvider``: ``get_role_details(name) -> RoleDetails`` plus paged listing.
- ``InMemoryPolicyStore`` / ``InMemoryRoleCatalog``: dictionary-backed
  implementations for offline analysis and tests.

Providers signal failures with ``UpstreamNotFound``, ``UpstreamPermissionDenied``
or ``UpstreamTransient`` from ``iamscope.exceptions``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from .exceptions import UpstreamNotFound
from .identifiers import PREDEFINED_PREFIX
from .models import Policy, PredefinedRole, RoleDetails


@runtime_checkable
class PolicyProvider(Protocol):
    """Fetches the policy attached to one resource."""

    async def get_policy(self, resource_id: str) -> Policy: ...


@runtime_checkable
class RoleMetadataProvider(Protocol):
    """Fetches role definitions from the role catalog."""

    async def get_role_details(self, role_name: str) -> RoleDetails: ...

    async def list_predefined_roles(
        self,
        page_size: int = 100,
        page_token: Optional[str] = None,
    ) -> tuple[list[PredefinedRole], Optional[str]]: ...


class InMemoryPolicyStore:
    """Policies keyed by resource id.

    Args:
        policies: Mapping of resource id → ``Policy`` or its JSON shape.
    """

    def __init__(self, policies: Mapping[str, Policy | Mapping[str, Any]] | None = None) -> None:
        self._policies: dict[str, Policy] = {}
        self.calls: list[str] = []
        for resource_id, policy in (policies or {}).items():
            self.set_policy(resource_id, policy)

    def set_policy(self, resource_id: str, policy: Policy | Mapping[str, Any]) -> None:
        self._policies[resource_id] = policy if isinstance(policy, Policy) else Policy.model_validate(policy)

    async def get_policy(self, resource_id: str) -> Policy:
        self.calls.append(resource_id)
        try:
            return self._policies[resource_id]
        except KeyError:
            raise UpstreamNotFound(f"No IAM policy for resource {resource_id}", resource_id=resource_id)


class InMemoryRoleCatalog:
    """Role definitions keyed by fully qualified role name.

    Each definition is a mapping with ``permissions`` and optionally
    ``included_roles``, ``title``, ``description`` and ``stage``. Definitions
    are returned as stored: a custom role may carry ``included_roles`` here,
    and it is up to the resolver to ignore them.

    Args:
        roles: Mapping of role name → definition.
        failures: Mapping of role name → exception raised instead of answering.

    Example::

        catalog = InMemoryRoleCatalog({
            "roles/editor": {"permissions": ["storage.objects.create"],
                             "included_roles": ["roles/viewer"]},
            "roles/viewer": {"permissions": ["storage.objects.get"]},
        })
    """

    def __init__(
        self,
        roles: Mapping[str, Mapping[str, Any]] | None = None,
        failures: Mapping[str, BaseException] | None = None,
    ) -> None:
        self._roles: dict[str, dict[str, Any]] = {name: dict(d) for name, d in (roles or {}).items()}
        self._failures: dict[str, BaseException] = dict(failures or {})
        self.calls: list[str] = []

    def add_role(
        self,
        name: str,
        permissions: list[str] | tuple[str, ...] = (),
        included_roles: list[str] | tuple[str, ...] = (),
        **metadata: Any,
    ) -> None:
        self._roles[name] = {
            "permissions": list(permissions),
            "included_roles": list(included_roles),
            **metadata,
        }

    def fail(self, name: str, error: BaseException) -> None:
        self._failures[name] = error

    async def get_role_details(self, role_name: str) -> RoleDetails:
        self.calls.append(role_name)
        if role_name in self._failures:
            raise self._failures[role_name]
        definition = self._roles.get(role_name)
        if definition is None:
            raise UpstreamNotFound(f"Role {role_name} not found", role=role_name)
        return RoleDetails.build(
            permissions=definition.get("permissions", ()),
            included_roles=definition.get("included_roles", ()),
        )

    async def list_predefined_roles(
        self,
        page_size: int = 100,
        page_token: Optional[str] = None,
    ) -> tuple[list[PredefinedRole], Optional[str]]:
        names = sorted(n for n in self._roles if n.startswith(PREDEFINED_PREFIX))
        start = int(page_token) if page_token else 0
        page = names[start : start + page_size]
        roles = [
            PredefinedRole(
                name=name,
                title=self._roles[name].get("title", ""),
                description=self._roles[name].get("description", ""),
                permissions=list(self._roles[name].get("permissions", ())),
                stage=self._roles[name].get("stage", ""),
            )
            for name in page
        ]
        end = start + page_size
        return roles, (str(end) if end < len(names) else None)


__all__ = [
    "InMemoryPolicyStore",
    "InMemoryRoleCatalog",
    "PolicyProvider",
    "RoleMetadataProvider",
]
