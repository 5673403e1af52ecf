"""Tests for role identifier classification."""

from __future__ import annotations

import pytest
from iamscope import RoleIdentifier, RoleKind, classify
from iamscope.identifiers import classify_all


class TestClassify:
    """Tests for classify()."""

    def test_predefined(self) -> None:
        role = classify("roles/viewer")
        assert role.kind is RoleKind.PREDEFINED
        assert role.canonical == "roles/viewer"
        assert role.parent_id is None
        assert role.role_id is None

    def test_predefined_with_dotted_name(self) -> None:
        role = classify("roles/compute.instanceAdmin.v1")
        assert role.kind is RoleKind.PREDEFINED

    def test_project_custom(self) -> None:
        role = classify("projects/p1/roles/custom1")
        assert role.kind is RoleKind.PROJECT_CUSTOM
        assert role.parent_id == "p1"
        assert role.role_id == "custom1"
        assert role.is_custom

    def test_organization_custom(self) -> None:
        role = classify("organizations/1234/roles/auditor")
        assert role.kind is RoleKind.ORGANIZATION_CUSTOM
        assert role.parent_id == "1234"
        assert role.role_id == "auditor"
        assert role.is_custom

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "viewer",
            "projects/p1/roles",
            "projects/p1/roles/custom1/extra",
            "projects/p1/perms/custom1",
            "folders/f1/roles/custom1",
            "projects//roles/custom1",
            "projects/p1/roles/",
        ],
    )
    def test_unrecognized(self, raw: str) -> None:
        """Anything that is not one of the three shapes is unrecognized."""
        role = classify(raw)
        assert role.kind is RoleKind.UNRECOGNIZED
        assert not role.is_custom
        assert not role.is_predefined

    def test_never_raises_on_non_string(self) -> None:
        role = classify(None)  # type: ignore[arg-type]
        assert role.kind is RoleKind.UNRECOGNIZED

    def test_whitespace_normalized(self) -> None:
        assert classify("  roles/viewer\n") == classify("roles/viewer")
        assert classify(" projects/p1/roles/c ").canonical == "projects/p1/roles/c"


class TestRoleIdentifierEquality:
    """Equality and hashing use the canonical string only."""

    def test_equal_identifiers_hash_equal(self) -> None:
        a = classify("roles/editor")
        b = classify(" roles/editor")
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_kind_not_part_of_equality(self) -> None:
        a = RoleIdentifier(canonical="roles/x", kind=RoleKind.PREDEFINED)
        b = RoleIdentifier(canonical="roles/x", kind=RoleKind.UNRECOGNIZED)
        assert a == b

    def test_str_is_canonical(self) -> None:
        assert str(classify("projects/p/roles/r")) == "projects/p/roles/r"

    def test_classify_all_deduplicates(self) -> None:
        roles = classify_all(["roles/viewer", "roles/viewer ", "roles/editor"])
        assert {r.canonical for r in roles} == {"roles/viewer", "roles/editor"}
