"""Tests for member matching."""

from __future__ import annotations

from iamscope import Policy, candidate_members, find_assigned_roles


def _policy(*bindings: tuple[str, list[str]]) -> Policy:
    return Policy.model_validate({"bindings": [{"role": r, "members": m} for r, m in bindings]})


class TestCandidateMembers:
    """Tests for candidate_members()."""

    def test_bare_email(self) -> None:
        assert candidate_members("a@x.com") == ("user:a@x.com", "serviceAccount:a@x.com")

    def test_prefixed_member_verbatim(self) -> None:
        assert candidate_members("group:team@x.com") == ("group:team@x.com",)

    def test_strips_whitespace(self) -> None:
        assert candidate_members(" a@x.com ")[0] == "user:a@x.com"


class TestFindAssignedRoles:
    """Tests for find_assigned_roles()."""

    def test_user_binding(self) -> None:
        policy = _policy(("roles/viewer", ["user:a@x.com"]))
        assert find_assigned_roles(policy, "a@x.com") == {"roles/viewer"}

    def test_service_account_binding(self) -> None:
        policy = _policy(("roles/editor", ["serviceAccount:sa@p.iam.gserviceaccount.com"]))
        assert find_assigned_roles(policy, "sa@p.iam.gserviceaccount.com") == {"roles/editor"}

    def test_both_prefixes_collected(self) -> None:
        policy = _policy(
            ("roles/viewer", ["user:a@x.com"]),
            ("roles/editor", ["serviceAccount:a@x.com"]),
            ("roles/owner", ["user:b@x.com"]),
        )
        assert find_assigned_roles(policy, "a@x.com") == {"roles/viewer", "roles/editor"}

    def test_no_match(self) -> None:
        policy = _policy(("roles/viewer", ["user:b@x.com"]))
        assert find_assigned_roles(policy, "a@x.com") == set()

    def test_exact_member_match_only(self) -> None:
        """Substring matches and other member types never count."""
        policy = _policy(
            ("roles/viewer", ["user:aa@x.com", "group:a@x.com", "domain:x.com"]),
        )
        assert find_assigned_roles(policy, "a@x.com") == set()

    def test_duplicate_role_bindings_collapse(self) -> None:
        policy = _policy(
            ("roles/viewer", ["user:a@x.com"]),
            ("roles/viewer", ["serviceAccount:a@x.com"]),
        )
        assert find_assigned_roles(policy, "a@x.com") == {"roles/viewer"}

    def test_empty_policy(self) -> None:
        assert find_assigned_roles(Policy(), "a@x.com") == set()

    def test_binding_without_members(self) -> None:
        policy = Policy.model_validate({"bindings": [{"role": "roles/viewer", "members": None}]})
        assert find_assigned_roles(policy, "a@x.com") == set()
