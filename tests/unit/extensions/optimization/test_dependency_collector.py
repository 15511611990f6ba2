"""
Unit tests for DependencyCollector.
"""

import pytest

from crud_access.core.meta import build_presenter_definition
from crud_access.extensions.optimization import (
    AssociationDependency,
    AssociationPath,
    DependencyCollector,
    DependencyReason,
)

pytestmark = pytest.mark.unit

DISPLAY = DependencyReason.DISPLAY
QUERY = DependencyReason.QUERY
leaf = AssociationPath.leaf
node = AssociationPath.node


@pytest.fixture
def collector(registry):
    return DependencyCollector(registry)


def _specs(collector):
    return [(dep.path.to_spec(), dep.reason.value) for dep in collector.dependencies]


def test_index_columns(registry, collector):
    presenter = build_presenter_definition(
        {
            "name": "deals",
            "model": "deal",
            "index": {
                "table_columns": [
                    {"field": "title"},
                    {"field": "company_id"},
                    {"field": "contact.company.name"},
                    {"field": "{company.name} / {company.industry.name}"},
                    {"field": "owner_id"},
                    {"field": "employer.name"},
                ]
            },
        }
    )

    collector.from_presenter(presenter, registry.model_definition("deal"), "index")

    assert _specs(collector) == [
        ("company", "display"),
        ({"contact": ["company"]}, "display"),
        ({"company": ["industry"]}, "display"),
        ("owner", "display"),
    ]


def test_show_layout(registry, collector):
    presenter = build_presenter_definition(
        {
            "name": "company_detail",
            "model": "company",
            "show": {
                "layout": [
                    {"type": "fields", "fields": [{"field": "name"}, {"field": "industry.name"}]},
                    {"type": "association_list", "association": "contacts", "display": "with_company"},
                    {"type": "association_list", "association": "deals"},
                    {"type": "association_list", "association": "ghosts"},
                    {"type": "association_list"},
                ]
            },
        }
    )

    collector.from_presenter(presenter, registry.model_definition("company"), "show")

    assert _specs(collector) == [
        ("industry", "display"),
        ({"contacts": ["company"]}, "display"),
        ("deals", "display"),
    ]


def test_show_association_list_uses_default_template(registry, collector):
    registry.register_model(
        {
            "name": "contact",
            "fields": ["first_name"],
            "associations": [{"name": "company", "type": "belongs_to", "target_model": "company"}],
            "display_templates": {"default": {"template": "{first_name}", "badge": "{company.status}"}},
        }
    )
    presenter = build_presenter_definition(
        {
            "name": "company_detail",
            "model": "company",
            "show": {"layout": [{"type": "association_list", "association": "contacts"}]},
        }
    )

    collector.from_presenter(presenter, registry.model_definition("company"), "show")

    assert collector.dependencies == [
        AssociationDependency(node("contacts", [leaf("company")]), DISPLAY)
    ]


def test_form_nested_fields(registry, collector):
    presenter = build_presenter_definition(
        {
            "name": "company_form",
            "model": "company",
            "form": {
                "sections": [
                    {"type": "nested_fields", "association": "contacts"},
                    {"type": "fields", "fields": [{"field": "industry.name"}]},
                    {"type": "nested_fields", "association": "subsidiaries"},
                ]
            },
        }
    )

    collector.from_presenter(presenter, registry.model_definition("company"), "form")

    assert _specs(collector) == [("contacts", "display")]


def test_unknown_context_collects_nothing(registry, collector):
    presenter = build_presenter_definition({"name": "deals", "model": "deal"})

    collector.from_presenter(presenter, registry.model_definition("deal"), "export")

    assert collector.dependencies == []


def test_sort_and_search_fields_are_query_dependencies(registry, collector):
    deal = registry.model_definition("deal")

    collector.from_sort("company.name", deal)
    collector.from_sort("title", deal)
    collector.from_sort(None, deal)
    collector.from_search(["title", "contact.email", "company.name", "employer.name"], deal)

    assert _specs(collector) == [("company", "query"), ("contact", "query")]


def test_manual_overrides(collector):
    collector.from_manual(
        {"includes": ["owner", {"contact": ["company"]}], "eager_load": ["company"]}
    )
    collector.from_manual(None)

    assert _specs(collector) == [
        ("owner", "display"),
        ({"contact": ["company"]}, "display"),
        ("company", "query"),
    ]


def test_duplicates_are_recorded_once(collector):
    collector.add_dependency(leaf("company"), DISPLAY)
    collector.add_dependency(leaf("company"), DISPLAY)
    collector.add_dependency(leaf("company"), QUERY)

    assert len(collector.dependencies) == 2
    assert collector.dependencies[1].is_query is True
    assert collector.dependencies[0].nested is False


def test_dot_paths_stop_at_first_non_association(registry, collector):
    presenter = build_presenter_definition(
        {
            "name": "deals",
            "model": "deal",
            "index": {
                "table_columns": [
                    {"field": "company.bogus.name"},
                    {"field": "company.name.first"},
                    {"field": "{contact.company.nothing.name}"},
                    {"field": "owner.team.name"},
                ]
            },
        }
    )

    collector.from_presenter(presenter, registry.model_definition("deal"), "index")

    assert _specs(collector) == [
        ("company", "display"),
        ({"contact": ["company"]}, "display"),
        ("owner", "display"),
    ]


def test_template_associations_are_checked_against_target(registry, collector):
    registry.register_model(
        {
            "name": "contact",
            "fields": ["first_name"],
            "associations": [{"name": "company", "type": "belongs_to", "target_model": "company"}],
            "display_templates": {
                "default": {"template": "{first_name}", "subtitle": "{employer.name} {company.name}"}
            },
        }
    )
    presenter = build_presenter_definition(
        {
            "name": "company_detail",
            "model": "company",
            "show": {"layout": [{"type": "association_list", "association": "contacts"}]},
        }
    )

    collector.from_presenter(presenter, registry.model_definition("company"), "show")

    assert _specs(collector) == [({"contacts": ["company"]}, "display")]
