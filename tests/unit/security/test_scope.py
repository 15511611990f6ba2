"""
Unit tests for role scope transformers.
"""

from types import SimpleNamespace

import pytest
from django.db.models import Q

from crud_access.core.exceptions import ConfigurationError, ScopeConfigurationError
from crud_access.security.rbac import ScopeBuilder

pytestmark = pytest.mark.unit


@pytest.fixture
def user():
    return SimpleNamespace(
        id=7,
        region="emea",
        team_ids=lambda: [1, 2],
        territories=["north", "south"],
    )


@pytest.mark.parametrize("scope", [None, "all"])
def test_unscoped_is_identity(fake_query, user, scope):
    assert ScopeBuilder(scope, user).apply(fake_query) is fake_query


def test_unknown_scope_type_is_identity(fake_query, user):
    scope = {"type": "geo_fence", "field": "region"}

    assert ScopeBuilder(scope, user).apply(fake_query) is fake_query


def test_field_match_with_literal(fake_query, user):
    scope = {"type": "field_match", "field": "status", "value": "active"}

    scoped = ScopeBuilder(scope, user).apply(fake_query)

    assert scoped.calls == [("filter", (), {"status": "active"})]


def test_field_match_with_current_user_id(fake_query, user):
    scope = {"type": "field_match", "field": "owner_id", "value": "current_user_id"}

    scoped = ScopeBuilder(scope, user).apply(fake_query)

    assert scoped.calls == [("filter", (), {"owner_id": 7})]


def test_current_user_id_falls_back_to_pk(fake_query):
    scope = {"type": "field_match", "field": "owner_id", "value": "current_user_id"}

    scoped = ScopeBuilder(scope, SimpleNamespace(pk=11)).apply(fake_query)

    assert scoped.calls == [("filter", (), {"owner_id": 11})]


def test_field_match_with_current_user_attribute(fake_query, user):
    scope = {"type": "field_match", "field": "region", "value": "current_user_region"}

    scoped = ScopeBuilder(scope, user).apply(fake_query)

    assert scoped.calls == [("filter", (), {"region": "emea"})]


def test_association_scope_filters_by_inclusion(fake_query, user):
    scope = {"type": "association", "field": "team_id", "method": "team_ids"}

    scoped = ScopeBuilder(scope, user).apply(fake_query)

    assert scoped.calls == [("filter", (), {"team_id__in": [1, 2]})]


def test_association_scope_reads_plain_attribute(fake_query, user):
    scope = {"type": "association", "field": "territory", "method": "territories"}

    scoped = ScopeBuilder(scope, user).apply(fake_query)

    assert scoped.calls == [("filter", (), {"territory__in": ["north", "south"]})]


def test_association_scope_without_user_method_is_identity(fake_query):
    scope = {"type": "association", "field": "team_id", "method": "team_ids"}

    assert ScopeBuilder(scope, SimpleNamespace(id=1)).apply(fake_query) is fake_query


def test_where_scope_passes_conditions_through(fake_query, user):
    scope = {"type": "where", "conditions": {"archived": False, "value__gte": 10}}

    scoped = ScopeBuilder(scope, user).apply(fake_query)

    assert scoped.calls == [("filter", (), {"archived": False, "value__gte": 10})]


def test_where_scope_accepts_q_objects(fake_query, user):
    condition = Q(status="open") | Q(status="won")

    scoped = ScopeBuilder({"type": "where", "conditions": condition}, user).apply(fake_query)

    assert scoped.calls == [("filter", (condition,), {})]


def test_custom_scope_calls_query_method(fake_query, user):
    scoped = ScopeBuilder({"type": "custom", "method": "visible_to"}, user).apply(fake_query)

    assert scoped.calls == [("visible_to", (user,), {})]


def test_custom_scope_without_query_method_is_identity(fake_query, user):
    scope = {"type": "custom", "method": "for_partner"}

    assert ScopeBuilder(scope, user).apply(fake_query) is fake_query


@pytest.mark.parametrize(
    "scope",
    [
        "mine",
        {"type": "field_match", "value": "x"},
        {"type": "association", "field": "team_id"},
        {"type": "custom"},
        {"type": "where"},
        {"type": "where", "conditions": {}},
    ],
)
def test_malformed_scope_raises(fake_query, user, scope):
    with pytest.raises(ScopeConfigurationError) as excinfo:
        ScopeBuilder(scope, user, "deal").apply(fake_query)

    assert isinstance(excinfo.value, ConfigurationError)
    assert excinfo.value.model_name == "deal"
