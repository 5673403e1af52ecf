"""Tests for the request-scoped RoleCache."""

from __future__ import annotations

from iamscope import RoleCache, RoleDetails, classify


class TestRoleCache:
    """Tests for RoleCache get/put semantics."""

    def test_get_absent(self) -> None:
        cache = RoleCache()
        assert cache.get("roles/viewer") is None
        assert cache.misses == 1

    def test_put_then_get(self) -> None:
        cache = RoleCache()
        details = RoleDetails.build(permissions=["a.b.c"])
        cache.put(classify("roles/viewer"), details)
        assert cache.get(classify("roles/viewer")) is details
        assert cache.hits == 1

    def test_different_spellings_share_entry(self) -> None:
        """String and identifier keys are normalized identically."""
        cache = RoleCache()
        cache.put(" roles/viewer ", RoleDetails.build(permissions=["x"]))
        cache.put(classify("roles/viewer"), RoleDetails.build(permissions=["x"]))
        assert len(cache) == 1
        assert "roles/viewer" in cache
        assert classify("roles/viewer\t") in cache

    def test_last_write_wins(self) -> None:
        cache = RoleCache()
        first = RoleDetails.build(permissions=["x"])
        second = RoleDetails.build(permissions=["y"])
        cache.put("roles/a", first)
        cache.put("roles/a", second)
        assert cache.get("roles/a") is second

    def test_contains_rejects_other_types(self) -> None:
        cache = RoleCache()
        assert 42 not in cache

    def test_iter_yields_canonical_keys(self) -> None:
        cache = RoleCache()
        cache.put("projects/p/roles/r", RoleDetails())
        assert list(cache) == ["projects/p/roles/r"]
