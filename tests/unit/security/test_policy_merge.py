"""
Unit tests for multi-role policy merging.
"""

import logging

import pytest

from crud_access.core.meta.builders import build_permission_definition
from crud_access.security.rbac import PermissionEvaluator
from crud_access.security.rbac.policy import (
    merge_actions,
    merge_role_configs,
    merge_scope,
)

pytestmark = pytest.mark.unit


def _definition(roles, **extra):
    return build_permission_definition({"model": "deal", "roles": roles, **extra})


def test_single_role_is_used_as_is():
    definition = _definition(
        {"sales": {"crud": ["index", "index", "show"], "fields": {"readable": ["title"]}}}
    )

    policy = merge_role_configs(definition, ["sales"])

    assert policy.crud == ["index", "show"]
    assert policy.fields == {"readable": ["title"]}
    assert policy.scope is None


def test_no_matching_role_uses_default_role():
    definition = _definition(
        {"viewer": {"crud": ["index"]}, "sales": {"crud": ["update"]}},
        default_role="viewer",
    )

    assert merge_role_configs(definition, []).crud == ["index"]


def test_crud_and_fields_merge_by_union():
    definition = _definition(
        {
            "sales": {"crud": ["index", "update"], "fields": {"readable": ["title"], "writable": ["title"]}},
            "support": {"crud": ["index", "show"], "fields": {"readable": ["stage", "title"]}},
        }
    )

    policy = merge_role_configs(definition, ["sales", "support"])

    assert policy.crud == ["index", "update", "show"]
    assert policy.fields == {"readable": ["title", "stage"], "writable": ["title"]}


def test_all_fields_win():
    definition = _definition(
        {
            "sales": {"fields": {"readable": ["title"], "writable": ["title"]}},
            "auditor": {"fields": {"readable": "all"}},
        }
    )

    policy = merge_role_configs(definition, ["sales", "auditor"])

    assert policy.fields == {"readable": "all", "writable": ["title"]}


def test_denied_actions_intersect():
    configs = [
        {"actions": {"allowed": ["close"], "denied": ["purge", "export"]}},
        {"actions": {"allowed": ["reopen"], "denied": ["purge"]}},
        {"crud": ["index"]},
    ]

    assert merge_actions(configs) == {"allowed": ["close", "reopen"], "denied": ["purge"]}


def test_allowed_all_and_actions_all():
    allowed_all = [
        {"actions": {"allowed": "all", "denied": ["purge"]}},
        {"actions": {"allowed": ["close"], "denied": ["purge"]}},
    ]

    assert merge_actions(allowed_all) == {"allowed": "all", "denied": ["purge"]}
    assert merge_actions(allowed_all + [{"actions": "all"}]) == "all"


def test_presenters_merge():
    definition = _definition(
        {"sales": {"presenters": ["deals"]}, "support": {"presenters": ["deals", "pipeline"]}}
    )

    assert merge_role_configs(definition, ["sales", "support"]).presenters == ["deals", "pipeline"]


def test_explicit_all_scope_wins():
    configs = [
        {"scope": {"type": "field_match", "field": "owner_id", "value": "current_user_id"}},
        {"scope": "all"},
    ]

    assert merge_scope(configs, "deal") == "all"


def test_first_scope_wins_with_warning(caplog):
    first = {"type": "field_match", "field": "owner_id", "value": "current_user_id"}
    second = {"type": "custom", "method": "in_territory"}

    with caplog.at_level(logging.WARNING, logger="crud_access"):
        scope = merge_scope([{"crud": ["index"]}, {"scope": first}, {"scope": second}], "deal")

    assert scope == first
    assert "Multiple scopes found for model 'deal'" in caplog.text


def test_missing_scopes_merge_to_all():
    assert merge_scope([{"crud": ["index"]}, {}], "deal") == "all"


def test_empty_role_config_grants_nothing():
    definition = _definition(
        {
            "blocked": {},
            "clerk": {"crud": ["index"], "fields": {"readable": ["title"]}},
            "viewer": {"crud": ["index", "show"], "fields": {"readable": ["title", "value"]}},
        },
        default_role="viewer",
    )

    policy = merge_role_configs(definition, ["blocked", "clerk"])

    assert definition.role_config_for("blocked") == {}
    assert policy.crud == ["index"]
    assert policy.fields == {"readable": ["title"]}


def test_empty_role_config_evaluator(make_user):
    definition = _definition(
        {
            "blocked": None,
            "clerk": {"crud": ["index"], "fields": {"readable": ["title"]}},
            "viewer": {"crud": ["index", "show"], "fields": {"readable": ["title", "value"]}},
        },
        default_role="viewer",
    )

    evaluator = PermissionEvaluator(definition, make_user("blocked", "clerk"), "deal")

    assert evaluator.roles == ["blocked", "clerk"]
    assert evaluator.can("index") is True
    assert evaluator.can("show") is False
    assert evaluator.effective_policy.fields["readable"] == ["title"]
