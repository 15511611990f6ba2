"""
Unit tests for ImpersonatedUser.
"""

from types import SimpleNamespace

import pytest

from crud_access.config_proxy import configure_settings
from crud_access.security.rbac import ImpersonatedUser, PermissionEvaluator, real_user_of

pytestmark = pytest.mark.unit


@pytest.fixture
def admin(make_user):
    return make_user("admin", id=5, username="root")


def test_role_attribute_returns_impersonated_role(admin):
    user = ImpersonatedUser(admin, "viewer")

    assert user.crud_roles == ["viewer"]
    assert user.impersonated_roles == ["viewer"]
    assert user.id == 5
    assert user.username == "root"


def test_role_attribute_is_configurable(admin):
    configure_settings(permission_settings__role_attribute="groups")
    user = ImpersonatedUser(admin, "manager")

    assert user.groups == ["manager"]
    assert user.crud_roles == ["admin"]


def test_evaluator_sees_only_impersonated_role(registry, admin):
    evaluator = PermissionEvaluator.for_model(
        "company", ImpersonatedUser(admin, "viewer"), registry=registry
    )

    assert evaluator.roles == ["viewer"]
    assert evaluator.can("update") is False
    assert evaluator.field_readable("revenue") is False


def test_evaluator_uses_impersonated_role_with_custom_attribute(registry, admin):
    configure_settings(permission_settings__role_attribute="groups")
    admin.groups = ["admin"]

    evaluator = PermissionEvaluator.for_model(
        "company", ImpersonatedUser(admin, "viewer"), registry=registry
    )

    assert evaluator.roles == ["viewer"]


def test_scope_uses_real_user_identity(registry, admin, fake_query):
    evaluator = PermissionEvaluator.for_model(
        "company", ImpersonatedUser(admin, "manager"), registry=registry
    )

    assert evaluator.apply_scope(fake_query).calls == [("filter", (), {"owner_id": 5})]


def test_undeclared_impersonated_role_gets_default_role(registry, admin):
    evaluator = PermissionEvaluator.for_model(
        "company", ImpersonatedUser(admin, "ghost"), registry=registry
    )

    assert evaluator.roles == ["viewer"]


def test_attribute_writes_reach_real_user(admin):
    user = ImpersonatedUser(admin, "viewer")

    user.nickname = "boss"

    assert admin.nickname == "boss"
    assert real_user_of(user) is admin
    assert real_user_of(admin) is admin
    assert real_user_of(None) is None


def test_missing_attribute_raises_attribute_error():
    user = ImpersonatedUser(SimpleNamespace(id=1), "viewer")

    with pytest.raises(AttributeError):
        user.username
