"""Resolution service: what a principal can do on one resource.

Combines member matching with permission aggregation. Every call builds its
own ``RoleCache``; nothing is shared between calls, so concurrent requests
need no coordination.

Operations:
- ``get_effective_permissions(policy, email)``: assigned roles + effective permissions.
- ``has_role(policy, email, role)``: role check with the owner shortcut.
- ``check_permissions(request)`` / ``check_role(request)``: the same answers for a
  resource id, fetching the policy first and rendering response bodies.
- ``list_predefined_roles()``: the predefined role catalog, direct permissions only.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from .aggregator import PermissionAggregator
from .cache import RoleCache
from .config import IamScopeConfig
from .exceptions import ConfigurationError, InputValidationError, UpstreamNotFound
from .identifiers import OWNER_ROLE, classify
from .logging import get_resolution_logger
from .members import find_assigned_roles
from .models import (
    EMPTY_POLICY,
    PermissionsRequest,
    PermissionsResponse,
    Policy,
    PredefinedRole,
    ResolutionResult,
    RoleCheckRequest,
    RoleCheckResponse,
    RoleCheckResult,
)
from .providers import PolicyProvider, RoleMetadataProvider
from .resolver import RoleResolver


class ResolutionService:
    """Combines member matching with ``PermissionAggregator``.

    Args:
        roles: Role catalog collaborator.
        policies: Policy collaborator (only needed for resource-level calls).
        config: Behaviour switches; defaults to ``IamScopeConfig()``.
    """

    def __init__(
        self,
        roles: RoleMetadataProvider,
        policies: Optional[PolicyProvider] = None,
        config: Optional[IamScopeConfig] = None,
    ) -> None:
        self._config = config or IamScopeConfig()
        self._roles = roles
        self._policies = policies
        self._aggregator = PermissionAggregator(
            RoleResolver(roles),
            concurrency=self._config.fetch_concurrency,
        )

    @classmethod
    def from_clients(cls, clients: Any, config: Optional[IamScopeConfig] = None) -> ResolutionService:
        """Build a service wired to Google providers from a ``GoogleCloudClients`` handle."""
        from .gcp import GooglePolicyProvider, GoogleRoleCatalog

        return cls(GoogleRoleCatalog(clients), GooglePolicyProvider(clients), config)

    @property
    def config(self) -> IamScopeConfig:
        return self._config

    # ── Policy-level operations ─────────────────────────

    async def get_effective_permissions(self, policy: Policy, email: str) -> ResolutionResult:
        """Assigned roles and every permission reachable from them.

        No role is fetched when the principal has no bindings.
        """
        assigned = find_assigned_roles(policy, email)
        if not assigned:
            return ResolutionResult()

        cache = RoleCache()
        permissions = await self._aggregator.resolve_effective_permissions(assigned, cache)
        return ResolutionResult(assigned_roles=assigned, effective_permissions=permissions)

    async def has_role(self, policy: Policy, email: str, role: str) -> RoleCheckResult:
        """Whether ``email`` holds ``role``.

        Holding ``roles/owner`` satisfies any role while
        ``owner_implies_all_roles`` is enabled. ``permissions`` is the full
        effective set of the assigned roles.
        """
        result = await self.get_effective_permissions(policy, email)
        assigned = {classify(r) for r in result.assigned_roles}

        granted = classify(role) in assigned
        if not granted and self._config.owner_implies_all_roles:
            granted = classify(OWNER_ROLE) in assigned

        return RoleCheckResult(
            has_role=granted,
            roles=result.assigned_roles,
            permissions=result.effective_permissions,
        )

    # ── Resource-level operations ───────────────────────

    async def fetch_policy(self, resource_id: str) -> Policy:
        """Policy of ``resource_id``; a missing policy means no bindings."""
        if self._policies is None:
            raise ConfigurationError("No policy provider configured for resource lookups")
        try:
            return await self._policies.get_policy(resource_id)
        except UpstreamNotFound:
            return EMPTY_POLICY

    async def check_permissions(self, request: PermissionsRequest | dict[str, Any]) -> PermissionsResponse:
        """Answer a ``{resourceId, email}`` request."""
        req = PermissionsRequest.parse(request)
        log = get_resolution_logger(__name__, request_id=uuid.uuid4().hex[:12], resource_id=req.resource_id)

        log.info("Fetching IAM policy for %s to check email: %s", req.resource_id, req.email)
        try:
            policy = await self.fetch_policy(req.resource_id)
            result = await self.get_effective_permissions(policy, req.email)
        except Exception as e:
            log.error("Error checking IAM permissions: %s", e)
            raise

        if result.is_empty:
            message = f"Email {req.email} has no direct roles on {req.resource_id}."
            log.info(message)
        else:
            message = f"Successfully retrieved effective permissions for {req.email} on {req.resource_id}."
            log.info(
                "Successfully analyzed permissions for %s on %s (%d roles, %d permissions).",
                req.email,
                req.resource_id,
                len(result.assigned_roles),
                len(result.effective_permissions),
            )

        return PermissionsResponse(
            email=req.email,
            resource_id=req.resource_id,
            assigned_roles=list(result.assigned_roles),
            effective_permissions=list(result.effective_permissions),
            message=message,
        )

    async def check_role(self, request: RoleCheckRequest | dict[str, Any]) -> RoleCheckResponse:
        """Answer a ``{resourceId, email, role}`` request."""
        req = RoleCheckRequest.parse(request)
        resource_id = req.resource_id or self._config.default_resource_id
        if not resource_id:
            raise InputValidationError("resourceId is required and must be a non-empty string.", field="resourceId")

        log = get_resolution_logger(__name__, request_id=uuid.uuid4().hex[:12], resource_id=resource_id)
        log.info("Checking role %s for %s on %s", req.role, req.email, resource_id)

        try:
            policy = await self.fetch_policy(resource_id)
            result = await self.has_role(policy, req.email, req.role)
        except Exception as e:
            log.error("Error checking IAM role: %s", e)
            raise

        if result.has_role:
            message = f"User {req.email} has role {req.role} on {resource_id}."
        else:
            message = f"User {req.email} does not have role {req.role} on {resource_id}."
        log.info(message)

        return RoleCheckResponse(
            has_role=result.has_role,
            roles=list(result.roles),
            permissions=list(result.permissions),
            message=message,
        )

    async def list_predefined_roles(self, page_size: int = 100) -> list[PredefinedRole]:
        """Every predefined role with its direct permissions, sorted by name."""
        log = get_resolution_logger(__name__)
        log.info("Listing all predefined roles...")

        roles: list[PredefinedRole] = []
        page_token: Optional[str] = None
        while True:
            page, page_token = await self._roles.list_predefined_roles(page_size=page_size, page_token=page_token)
            roles.extend(page)
            if not page_token:
                break

        log.info("Successfully listed %d predefined roles.", len(roles))
        return sorted(roles, key=lambda r: r.name)


__all__ = ["ResolutionService"]
