"""Data models for permission resolution.

``RoleDetails`` is an immutable dataclass because it is produced and cached
inside the engine. Everything that crosses the provider or HTTP boundary is a
Pydantic model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import InputValidationError
from .identifiers import RoleIdentifier, classify_all


@dataclass(frozen=True)
class RoleDetails:
    """Direct permissions and directly included roles of one role."""

    permissions: frozenset[str] = field(default_factory=frozenset)
    included_roles: frozenset[RoleIdentifier] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        permissions: Iterable[str] = (),
        included_roles: Iterable[str] = (),
    ) -> RoleDetails:
        """Build details from raw permission and role-name lists."""
        return cls(
            permissions=frozenset(p for p in permissions if p),
            included_roles=classify_all(r for r in included_roles if r),
        )

    def without_included_roles(self) -> RoleDetails:
        if not self.included_roles:
            return self
        return RoleDetails(permissions=self.permissions)


EMPTY_ROLE_DETAILS = RoleDetails()


# ── Policy ──────────────────────────────────────────────


class RoleBinding(BaseModel):
    """One role bound to a set of member identifiers (``user:…``, ``serviceAccount:…``)."""

    model_config = ConfigDict(extra="ignore")

    role: str
    members: list[str] = Field(default_factory=list)

    @field_validator("members", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v if v is not None else []


class Policy(BaseModel):
    """Ordered role bindings of one resource.

    Accepts the upstream JSON shape (``{"bindings": [...], "etag": ..., "version": ...}``);
    unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    bindings: list[RoleBinding] = Field(default_factory=list)
    etag: Optional[str] = None
    version: Optional[int] = None

    @field_validator("bindings", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v if v is not None else []


EMPTY_POLICY = Policy()


# ── Results ─────────────────────────────────────────────


class ResolutionResult(BaseModel):
    """Assigned roles and effective permissions, both sorted."""

    model_config = ConfigDict(frozen=True)

    assigned_roles: tuple[str, ...] = ()
    effective_permissions: tuple[str, ...] = ()

    @field_validator("assigned_roles", "effective_permissions", mode="before")
    @classmethod
    def sort_unique(cls, v: Iterable[str]) -> tuple[str, ...]:
        return tuple(sorted(set(v)))

    @property
    def is_empty(self) -> bool:
        return not self.assigned_roles


class RoleCheckResult(BaseModel):
    """Outcome of a role check for one principal."""

    model_config = ConfigDict(frozen=True)

    has_role: bool
    roles: tuple[str, ...] = ()
    permissions: tuple[str, ...] = ()

    @field_validator("roles", "permissions", mode="before")
    @classmethod
    def sort_unique(cls, v: Iterable[str]) -> tuple[str, ...]:
        return tuple(sorted(set(v)))


class PredefinedRole(BaseModel):
    """A predefined role as listed by the role catalog (direct permissions only)."""

    name: str
    title: str = ""
    description: str = ""
    permissions: list[str] = Field(default_factory=list)
    stage: str = ""


# ── HTTP-facing request / response bodies ───────────────


def _require_text(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} is required and must be a non-empty string.")
    return value.strip()


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def parse(cls, payload: Any):
        """Validate a request body, raising ``InputValidationError`` on bad input."""
        if isinstance(payload, cls):
            return payload
        try:
            return cls.model_validate(payload or {})
        except ValidationError as e:
            first = e.errors()[0]
            loc = first.get("loc") or ("body",)
            field_name = str(loc[0])
            if first.get("type") == "missing":
                message = f"{field_name} is required and must be a non-empty string."
            else:
                message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
            raise InputValidationError(message, field=field_name) from e


class PermissionsRequest(_Request):
    """``{resourceId, email}``."""

    resource_id: str = Field(alias="resourceId")
    email: str

    @field_validator("resource_id", mode="before")
    @classmethod
    def check_resource_id(cls, v: Any) -> str:
        return _require_text(v, "resourceId")

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        return _require_text(v, "email")


class RoleCheckRequest(_Request):
    """``{resourceId, email, role}``. ``resourceId`` may fall back to configuration."""

    resource_id: Optional[str] = Field(default=None, alias="resourceId")
    email: str
    role: str

    @field_validator("resource_id", mode="before")
    @classmethod
    def blank_resource_id(cls, v: Any) -> Optional[str]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return _require_text(v, "resourceId")

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        return _require_text(v, "email")

    @field_validator("role", mode="before")
    @classmethod
    def check_role(cls, v: Any) -> str:
        return _require_text(v, "role")


class PermissionsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    resource_id: str = Field(alias="resourceId")
    assigned_roles: list[str] = Field(default_factory=list, alias="assignedRoles")
    effective_permissions: list[str] = Field(default_factory=list, alias="effectivePermissions")
    message: str = ""

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class RoleCheckResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_role: bool = Field(alias="hasRole")
    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
    message: str = ""

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


__all__ = [
    "EMPTY_POLICY",
    "EMPTY_ROLE_DETAILS",
    "PermissionsRequest",
    "PermissionsResponse",
    "Policy",
    "PredefinedRole",
    "ResolutionResult",
    "RoleBinding",
    "RoleCheckRequest",
    "RoleCheckResponse",
    "RoleCheckResult",
    "RoleDetails",
]
