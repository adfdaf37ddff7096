import uuid

import pytest
from django.test import Client
from ninja_jwt.tokens import AccessToken

from src.cards.management.commands.cards_seed_forms import load_bundled_schema
from src.cards.registry.services import form_register
from src.users.models import User


@pytest.fixture
def make_member(db):
    def _make(email=None, **extra):
        email = email or f"member-{uuid.uuid4().hex[:8]}@example.org"
        return User.objects.create_user(email=email, password="s3cret-pass", **extra)

    return _make


@pytest.fixture
def alice(make_member):
    return make_member("alice@example.org", display_name="Alice")


@pytest.fixture
def bob(make_member):
    return make_member("bob@example.org", display_name="Bob")


@pytest.fixture
def carol(make_member):
    return make_member("carol@example.org", display_name="Carol")


@pytest.fixture
def data_form(db):
    return form_register(
        name="Health Data",
        form_type="data",
        schema_definition={
            "type": "object",
            "required": ["subject"],
            "properties": {
                "subject": {"type": "string", "minLength": 1},
                "retention_days": {"type": "integer", "minimum": 0},
            },
        },
    )


@pytest.fixture
def entity_form(db):
    return form_register(name="Entity CARD", form_type="entity", schema_definition=load_bundled_schema("entity.schema.json"))


@pytest.fixture
def use_form(db):
    return form_register(name="Use CARD", form_type="use", schema_definition=load_bundled_schema("use.schema.json"))


@pytest.fixture
def api_client():
    return Client()


@pytest.fixture
def bearer():
    def _headers(member):
        return {"Authorization": f"Bearer {AccessToken.for_user(member)}"}

    return _headers
