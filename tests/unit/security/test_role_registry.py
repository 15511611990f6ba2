"""
Unit tests for the role registry.
"""

import logging

import pytest

from crud_access.security.rbac import RoleRegistry

pytestmark = pytest.mark.unit


def test_registry_without_loader_is_unavailable():
    registry = RoleRegistry()

    assert registry.available is False
    assert registry.all_role_names() == []


def test_role_names_are_sorted_and_cached():
    calls = []

    def loader():
        calls.append(1)
        return ["viewer", "admin", "viewer"]

    registry = RoleRegistry(loader)

    assert registry.all_role_names() == ["admin", "viewer"]
    assert registry.valid_role("admin") is True
    assert registry.valid_role("ghost") is False
    assert len(calls) == 1


def test_reload_drops_cache():
    names = ["admin"]
    registry = RoleRegistry(lambda: list(names))
    assert registry.all_role_names() == ["admin"]

    names.append("sales")
    assert registry.all_role_names() == ["admin"]

    registry.reload()
    assert registry.all_role_names() == ["admin", "sales"]


def test_set_loader_replaces_source():
    registry = RoleRegistry(lambda: ["admin"])
    registry.all_role_names()

    registry.set_loader(lambda: ["ops"])

    assert registry.all_role_names() == ["ops"]


def test_failing_loader_yields_no_roles(caplog):
    def loader():
        raise RuntimeError("role table missing")

    registry = RoleRegistry(loader)
    with caplog.at_level(logging.WARNING, logger="crud_access"):
        assert registry.all_role_names() == []

    assert "role table missing" in caplog.text
