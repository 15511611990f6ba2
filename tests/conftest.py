"""
Shared fixtures: a small CRM metadata set (company, contact, deal, country,
industry), user and record stubs, and a query object recording the calls
made on it.
"""

from types import SimpleNamespace

import pytest

from crud_access.config_proxy import clear_runtime_settings
from crud_access.core.meta.registry import MetadataRegistry

MODELS = [
    {
        "name": "country",
        "fields": ["name", "code"],
        "display_templates": {"default": "{name}"},
    },
    {
        "name": "industry",
        "fields": ["name"],
        "display_templates": {"default": "{name}"},
    },
    {
        "name": "company",
        "fields": [
            {"name": "name"},
            {"name": "website"},
            {"name": "revenue", "type": "decimal"},
            {"name": "status"},
            {"name": "custom_data", "type": "json"},
        ],
        "associations": [
            {"name": "country", "type": "belongs_to", "target_model": "country"},
            {"name": "industry", "type": "belongs_to", "target_model": "industry"},
            {"name": "contacts", "type": "has_many", "target_model": "contact"},
            {"name": "deals", "type": "has_many", "target_model": "deal"},
        ],
        "display_templates": {
            "default": {"template": "{name}", "subtitle": "{industry.name}"},
        },
        "custom_fields": ["tier"],
    },
    {
        "name": "contact",
        "fields": ["first_name", "last_name", "email", "phone"],
        "associations": [
            {"name": "company", "type": "belongs_to", "target_model": "company"},
        ],
        "display_templates": {
            "default": {"template": "{first_name} {last_name}"},
            "with_company": {
                "template": "{first_name} {last_name}",
                "subtitle": "{company.name} / {company.country.name}",
            },
        },
    },
    {
        "name": "deal",
        "fields": ["title", "value", "stage", "status"],
        "associations": [
            {"name": "company", "type": "belongs_to", "target_model": "company"},
            {"name": "contact", "type": "belongs_to", "target_model": "contact"},
            {"name": "owner", "type": "belongs_to", "class_name": "auth.User"},
        ],
        "label_method": "display_name",
    },
]

FULL_ACCESS = {
    "crud": ["index", "show", "create", "update", "destroy"],
    "fields": {"readable": "all", "writable": "all"},
    "actions": "all",
    "presenters": "all",
    "scope": "all",
}

PERMISSIONS = [
    {
        "model": "company",
        "roles": {
            "admin": FULL_ACCESS,
            "manager": {
                "crud": ["index", "show", "update"],
                "fields": {
                    "readable": [
                        "name",
                        "website",
                        "revenue",
                        "status",
                        "country_id",
                        "industry_id",
                        "custom_data",
                    ],
                    "writable": ["name", "website", "revenue"],
                },
                "actions": {"allowed": ["archive", "export"], "denied": ["purge"]},
                "presenters": ["companies", "company_admin"],
                "scope": {"type": "field_match", "field": "owner_id", "value": "current_user_id"},
            },
            "viewer": {
                "crud": ["index", "show"],
                "fields": {"readable": ["name", "website", "status"], "writable": []},
                "actions": {"allowed": ["export"], "denied": []},
                "presenters": ["companies"],
                "scope": {"type": "field_match", "field": "status", "value": "active"},
            },
        },
        "default_role": "viewer",
        "field_overrides": {
            "revenue": {"readable_by": ["admin", "finance"], "masked_for": ["viewer"]},
            "website": {"writable_by": ["admin"]},
        },
        "record_rules": [
            {
                "name": "archived_is_read_only",
                "condition": {"field": "status", "operator": "eq", "value": "archived"},
                "effect": {"deny_crud": ["update", "destroy"], "except_roles": ["admin"]},
            }
        ],
    },
    {
        "model": "contact",
        "roles": {
            "admin": FULL_ACCESS,
            "manager": {
                "crud": ["index", "show", "create", "update"],
                "fields": {"readable": "all", "writable": ["first_name", "last_name"]},
            },
            "viewer": {
                "crud": ["index", "show"],
                "fields": {"readable": ["first_name", "last_name"]},
            },
        },
        "default_role": "viewer",
    },
    {
        "model": "deal",
        "roles": {
            "admin": FULL_ACCESS,
            "viewer": {
                "crud": ["index"],
                "fields": {"readable": ["title", "stage"]},
            },
        },
        "default_role": "viewer",
    },
    {
        "model": "industry",
        "roles": {
            "admin": FULL_ACCESS,
            "viewer": {"crud": ["index", "show"], "fields": {"readable": ["name"]}},
        },
        "default_role": "viewer",
    },
]


class FakeQuery:
    """QuerySet stand-in recording every chained call."""

    def __init__(self, calls=()):
        self.calls = list(calls)

    def _chain(self, name, *args, **kwargs):
        return FakeQuery(self.calls + [(name, args, kwargs)])

    def filter(self, *args, **kwargs):
        return self._chain("filter", *args, **kwargs)

    def order_by(self, *args):
        return self._chain("order_by", *args)

    def select_related(self, *args):
        return self._chain("select_related", *args)

    def prefetch_related(self, *args):
        return self._chain("prefetch_related", *args)

    def distinct(self, *args):
        return self._chain("distinct", *args)

    def visible_to(self, user):
        return self._chain("visible_to", user)

    def call_names(self):
        return [name for name, _args, _kwargs in self.calls]


@pytest.fixture(autouse=True)
def _reset_runtime_settings():
    clear_runtime_settings()
    yield
    clear_runtime_settings()


@pytest.fixture
def registry():
    crm = MetadataRegistry()
    for model in MODELS:
        crm.register_model(model)
    for permission in PERMISSIONS:
        crm.register_permission(permission)
    return crm


@pytest.fixture
def make_user():
    def _make(*roles, **attributes):
        attributes.setdefault("id", 7)
        return SimpleNamespace(crud_roles=list(roles), **attributes)

    return _make


@pytest.fixture
def fake_query():
    return FakeQuery()


@pytest.fixture
def crm_records():
    """A company with an industry, a country, three contacts and a deal."""
    country = SimpleNamespace(name="France", code="FR", to_label=lambda: "France (FR)")
    industry = SimpleNamespace(name="Logistics", to_label=lambda: "Logistics")
    company = SimpleNamespace(
        id=1,
        name="Acme",
        website="https://acme.test",
        revenue=1200000,
        status="active",
        country=country,
        country_id=10,
        industry=industry,
        industry_id=20,
        tier="gold",
        custom_data={"tier": "gold"},
        to_label=lambda: "Acme Corp",
    )
    contacts = [
        SimpleNamespace(first_name="Ann", last_name="Lee", email="ann@acme.test", company=company),
        SimpleNamespace(first_name=None, last_name="Ghost", email="ghost@acme.test", company=company),
        SimpleNamespace(first_name="Bo", last_name="Chen", email="bo@acme.test", company=company),
    ]
    company.contacts = contacts
    deal = SimpleNamespace(
        title="Renewal",
        value=5000,
        stage="won",
        status="open",
        company=company,
        company_id=1,
        contact=contacts[0],
        contact_id=100,
        owner=SimpleNamespace(username="jdoe"),
        owner_id=3,
        display_name="Renewal (won)",
    )
    company.deals = [deal]
    return SimpleNamespace(
        country=country,
        industry=industry,
        company=company,
        contacts=contacts,
        deal=deal,
    )
