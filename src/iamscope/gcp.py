"""Google Cloud adapters for the policy and role-catalog collaborators.

``GoogleCloudClients`` is an explicitly constructed handle around the IAM
and Resource Manager async clients. It starts not-ready, becomes ready after
``initialize()`` succeeds, and can be re-initialized on demand. Services
receive the handle (or the providers built from it) instead of reading
process-wide client variables.

Error mapping (``google.api_core.exceptions`` → ``iamscope.exceptions``):
    NotFound                                   → UpstreamNotFound
    Forbidden / PermissionDenied / Unauthenticated → UpstreamPermissionDenied
    TooManyRequests / ServiceUnavailable / DeadlineExceeded /
    InternalServerError / GatewayTimeout / RetryError → UpstreamTransient
    anything else                              → InternalResolutionError
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

from google.api_core import exceptions as google_exceptions

from .config import IamScopeConfig
from .exceptions import (
    ConfigurationError,
    InternalResolutionError,
    ResolutionError,
    UpstreamNotFound,
    UpstreamPermissionDenied,
    UpstreamTransient,
)
from .identifiers import PREDEFINED_PREFIX
from .models import Policy, PredefinedRole, RoleBinding, RoleDetails

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    google_exceptions.TooManyRequests,
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.GatewayTimeout,
    google_exceptions.RetryError,
    ConnectionError,
    TimeoutError,
)

_DENIED_ERRORS = (
    google_exceptions.Forbidden,
    google_exceptions.Unauthenticated,
)


def translate_google_error(error: BaseException, subject: str) -> ResolutionError:
    """Convert a Google client exception into the iamscope taxonomy."""
    detail = str(error)
    if isinstance(error, ResolutionError):
        return error
    if isinstance(error, google_exceptions.NotFound):
        return UpstreamNotFound(f"{subject} not found", subject=subject, details=detail)
    if isinstance(error, _DENIED_ERRORS):
        return UpstreamPermissionDenied(subject=subject, details=detail)
    if isinstance(error, _TRANSIENT_ERRORS):
        return UpstreamTransient(f"Upstream unavailable while reading {subject}", subject=subject, details=detail)
    return InternalResolutionError(f"Unexpected upstream error while reading {subject}", subject=subject, details=detail)


def normalize_resource_id(resource_id: str) -> str:
    """Full resource name for a policy lookup. Bare ids are projects."""
    resource_id = resource_id.strip()
    if resource_id.startswith(("projects/", "folders/", "organizations/")):
        return resource_id
    return f"projects/{resource_id}"


# ── Client handle ───────────────────────────────────────


class GoogleCloudClients:
    """IAM and Resource Manager clients with a defined ready state.

    Args:
        config: Credentials and scopes to initialize with.
        iam_client: Pre-built ``IAMAsyncClient`` (skips credential loading).
        projects_client: Pre-built ``ProjectsAsyncClient``.
        folders_client: Pre-built ``FoldersAsyncClient``.
        organizations_client: Pre-built ``OrganizationsAsyncClient``.

    Usage::

        clients = GoogleCloudClients(load_config_from_env())
        await clients.initialize()
        service = ResolutionService.from_clients(clients, config)
    """

    def __init__(
        self,
        config: Optional[IamScopeConfig] = None,
        *,
        iam_client: Any = None,
        projects_client: Any = None,
        folders_client: Any = None,
        organizations_client: Any = None,
    ) -> None:
        self._config = config or IamScopeConfig()
        self._iam = iam_client
        self._projects = projects_client
        self._folders = folders_client
        self._organizations = organizations_client

    @property
    def ready(self) -> bool:
        return self._iam is not None and self._projects is not None

    def _load_credentials(self) -> Any:
        scopes = list(self._config.scopes)
        if self._config.credentials_path:
            from google.oauth2 import service_account

            return service_account.Credentials.from_service_account_file(
                self._config.credentials_path,
                scopes=scopes,
            )

        import google.auth

        logger.warning(
            "GOOGLE_APPLICATION_CREDENTIALS is not set; using Application Default Credentials"
        )
        credentials, _ = google.auth.default(scopes=scopes)
        return credentials

    async def initialize(self) -> bool:
        """Create the upstream clients. Idempotent; returns the ready state."""
        if self.ready:
            return True

        import google.auth.exceptions

        try:
            credentials = self._load_credentials()

            from google.cloud import iam_admin_v1, resourcemanager_v3

            self._iam = self._iam or iam_admin_v1.IAMAsyncClient(credentials=credentials)
            self._projects = self._projects or resourcemanager_v3.ProjectsAsyncClient(credentials=credentials)
            self._folders = self._folders or resourcemanager_v3.FoldersAsyncClient(credentials=credentials)
            self._organizations = self._organizations or resourcemanager_v3.OrganizationsAsyncClient(
                credentials=credentials
            )
        except (google.auth.exceptions.GoogleAuthError, OSError, ValueError) as e:
            logger.error("Failed to initialize Google API clients: %s", e)
            return False

        logger.info("Google API clients (Resource Manager, IAM) initialized.")
        return True

    async def ensure_ready(self) -> None:
        """Re-initialize if needed, raising ``ConfigurationError`` when that fails."""
        if self.ready:
            return
        logger.error("Google API clients not initialized. Attempting re-initialization.")
        if not await self.initialize():
            raise ConfigurationError()

    def require_ready(self) -> None:
        if not self.ready:
            raise ConfigurationError()

    @property
    def iam(self) -> Any:
        self.require_ready()
        return self._iam

    def policy_client_for(self, resource: str) -> Any:
        self.require_ready()
        if resource.startswith("folders/"):
            client = self._folders
        elif resource.startswith("organizations/"):
            client = self._organizations
        else:
            client = self._projects
        if client is None:
            raise ConfigurationError(f"No Resource Manager client available for {resource}")
        return client


# ── Providers ───────────────────────────────────────────


class GoogleRoleCatalog:
    """``RoleMetadataProvider`` backed by the IAM admin API."""

    def __init__(self, clients: GoogleCloudClients) -> None:
        self._clients = clients

    async def get_role_details(self, role_name: str) -> RoleDetails:
        await self._clients.ensure_ready()
        try:
            role = await self._clients.iam.get_role(request={"name": role_name})
        except Exception as e:
            raise translate_google_error(e, f"role {role_name}") from e

        # The v1 Role message carries no included roles; honour them if a catalog reports any.
        return RoleDetails.build(
            permissions=list(role.included_permissions),
            included_roles=list(getattr(role, "included_roles", None) or ()),
        )

    async def list_predefined_roles(
        self,
        page_size: int = 100,
        page_token: Optional[str] = None,
    ) -> tuple[list[PredefinedRole], Optional[str]]:
        await self._clients.ensure_ready()

        from google.cloud import iam_admin_v1

        request = {
            "page_size": page_size,
            "page_token": page_token or "",
            "view": iam_admin_v1.RoleView.FULL,
        }
        try:
            pager = await self._clients.iam.list_roles(request=request)
            async for response in pager.pages:
                roles = [
                    PredefinedRole(
                        name=role.name,
                        title=role.title,
                        description=role.description,
                        permissions=list(role.included_permissions),
                        stage=getattr(role.stage, "name", str(role.stage)),
                    )
                    for role in response.roles
                    if role.name.startswith(PREDEFINED_PREFIX)
                ]
                return roles, (response.next_page_token or None)
        except Exception as e:
            raise translate_google_error(e, "predefined roles") from e
        return [], None


class GooglePolicyProvider:
    """``PolicyProvider`` backed by the Resource Manager ``getIamPolicy`` calls."""

    def __init__(self, clients: GoogleCloudClients) -> None:
        self._clients = clients

    async def get_policy(self, resource_id: str) -> Policy:
        await self._clients.ensure_ready()
        resource = normalize_resource_id(resource_id)
        client = self._clients.policy_client_for(resource)
        try:
            response = await client.get_iam_policy(request={"resource": resource})
        except Exception as e:
            raise translate_google_error(e, f"IAM policy of {resource}") from e

        etag = response.etag
        return Policy(
            bindings=[RoleBinding(role=b.role, members=list(b.members)) for b in response.bindings],
            etag=base64.b64encode(etag).decode("ascii") if isinstance(etag, bytes) and etag else None,
            version=response.version or None,
        )


__all__ = [
    "GoogleCloudClients",
    "GooglePolicyProvider",
    "GoogleRoleCatalog",
    "normalize_resource_id",
    "translate_google_error",
]
