"""Role identifier classification.

Turns raw role names from policies and role definitions into
``RoleIdentifier`` values. Equality and hashing use the canonical string
only, so cache keys and visited sets match exactly regardless of how a
role name was spelled on the way in.

Shapes:
- ``roles/{name}``                      → ``RoleKind.PREDEFINED``
- ``projects/{P}/roles/{R}``            → ``RoleKind.PROJECT_CUSTOM``
- ``organizations/{O}/roles/{R}``       → ``RoleKind.ORGANIZATION_CUSTOM``
- anything else                         → ``RoleKind.UNRECOGNIZED``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

PREDEFINED_PREFIX = "roles/"
OWNER_ROLE = "roles/owner"


class RoleKind(str, Enum):
    """Kind of role a name addresses."""

    PREDEFINED = "predefined"
    PROJECT_CUSTOM = "project_custom"
    ORGANIZATION_CUSTOM = "organization_custom"
    UNRECOGNIZED = "unrecognized"


_CUSTOM_PARENTS = {
    "projects": RoleKind.PROJECT_CUSTOM,
    "organizations": RoleKind.ORGANIZATION_CUSTOM,
}


@dataclass(frozen=True)
class RoleIdentifier:
    """Normalized role name.

    Attributes:
        canonical: Normalized role name, the only field used for equality.
        kind: Classification of the name.
        parent_id: Project or organization id (custom roles only).
        role_id: Role id within the parent (custom roles only).
    """

    canonical: str
    kind: RoleKind = field(compare=False)
    parent_id: str | None = field(default=None, compare=False)
    role_id: str | None = field(default=None, compare=False)

    @property
    def is_custom(self) -> bool:
        return self.kind in (RoleKind.PROJECT_CUSTOM, RoleKind.ORGANIZATION_CUSTOM)

    @property
    def is_predefined(self) -> bool:
        return self.kind is RoleKind.PREDEFINED

    def __str__(self) -> str:
        return self.canonical


def classify(raw: str) -> RoleIdentifier:
    """Classify a raw role name. Total: never raises.

    Example::

        >>> classify("projects/p1/roles/custom1").kind
        <RoleKind.PROJECT_CUSTOM: 'project_custom'>
        >>> classify("roles/viewer") == classify(" roles/viewer ")
        True
    """
    name = raw.strip() if isinstance(raw, str) else ""

    if name.startswith(PREDEFINED_PREFIX):
        return RoleIdentifier(canonical=name, kind=RoleKind.PREDEFINED)

    parts = name.split("/")
    if len(parts) == 4 and parts[0] in _CUSTOM_PARENTS and parts[2] == "roles" and parts[1] and parts[3]:
        return RoleIdentifier(
            canonical=name,
            kind=_CUSTOM_PARENTS[parts[0]],
            parent_id=parts[1],
            role_id=parts[3],
        )

    return RoleIdentifier(canonical=name, kind=RoleKind.UNRECOGNIZED)


def classify_all(raw_names) -> frozenset[RoleIdentifier]:
    """Classify an iterable of role names into a set of identifiers."""
    return frozenset(classify(name) for name in raw_names)


__all__ = [
    "OWNER_ROLE",
    "PREDEFINED_PREFIX",
    "RoleIdentifier",
    "RoleKind",
    "classify",
    "classify_all",
]
