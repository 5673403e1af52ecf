"""Principal → directly bound roles."""

from __future__ import annotations

from .models import Policy

USER_PREFIX = "user:"
SERVICE_ACCOUNT_PREFIX = "serviceAccount:"


def candidate_members(email: str) -> tuple[str, ...]:
    """Member identifiers a bare email may appear under in bindings.

    An already-prefixed identifier (``group:team@x.com``) is matched verbatim.
    """
    email = email.strip()
    if ":" in email:
        return (email,)
    return (f"{USER_PREFIX}{email}", f"{SERVICE_ACCOUNT_PREFIX}{email}")


def find_assigned_roles(policy: Policy, email: str) -> set[str]:
    """Roles of every binding whose members include one of the candidates."""
    candidates = candidate_members(email)
    assigned: set[str] = set()
    for binding in policy.bindings:
        members = binding.members
        if any(candidate in members for candidate in candidates):
            assigned.add(binding.role)
    return assigned


__all__ = [
    "SERVICE_ACCOUNT_PREFIX",
    "USER_PREFIX",
    "candidate_members",
    "find_assigned_roles",
]
