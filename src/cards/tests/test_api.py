import json

import pytest

from src.api_keys.services import api_key_create
from src.auditaction.models import AuditAction, AuditLog
from src.cards.models import CardForm, CardInstance

VERIFY_URL = "/api/verify-card"


@pytest.mark.django_db
def test_verify_requires_agent_id(api_client):
    response = api_client.get(VERIFY_URL)
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameter: agent_id"}
    assert response["Access-Control-Allow-Origin"] == "*"


@pytest.mark.django_db
def test_verify_only_answers_get(api_client):
    response = api_client.post(VERIFY_URL, data={}, content_type="application/json")
    assert response.status_code == 405
    assert "error" in response.json()

    preflight = api_client.options(VERIFY_URL)
    assert preflight.status_code == 200
    assert preflight.content == b"ok"
    assert preflight["Access-Control-Allow-Methods"] == "GET, OPTIONS"


@pytest.mark.django_db
def test_verify_returns_bare_document(api_client):
    response = api_client.get(VERIFY_URL, {"agent_id": "nobody"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"agent_id", "entity_status", "operator", "active_use_cards", "verified_at"}
    assert body["entity_status"] == "unknown"
    assert body["operator"] == {"id": "", "display_name": "Unknown"}


@pytest.mark.django_db
def test_verify_reports_unexpected_failures(api_client, monkeypatch):
    from src.cards.verification import controllers

    def boom(**kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(controllers, "verify", boom)
    response = api_client.get(VERIFY_URL, {"agent_id": "a"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "detail": "database unavailable"}


@pytest.fixture
def service_key(db):
    _, plain_key = api_key_create(created_by=None, name="bootstrap", permissions=["forms:register"])
    return plain_key


@pytest.mark.django_db
def test_system_registration(api_client, service_key):
    response = api_client.post(
        "/api/system/forms",
        data=json.dumps({"name": "Entity CARD", "form_type": "entity", "schema_definition": {"type": "object"}}),
        content_type="application/json",
        headers={"X-API-Key": service_key},
    )

    assert response.status_code == 200
    form = CardForm.objects.get(pk=response.json()["id"])
    assert form.is_registered

    entry = AuditLog.objects.get(action=AuditAction.FORM_REGISTERED, entity_id=str(form.id))
    assert entry.actor is None
    assert entry.lifecycle_context["registration_mode"] == "system"


@pytest.mark.django_db
@pytest.mark.parametrize(
    "body",
    [
        {"form_type": "entity", "schema_definition": {"type": "object"}},
        {"name": "X", "form_type": "policy", "schema_definition": {"type": "object"}},
        {"name": "X", "form_type": "data", "schema_definition": {"type": 12}},
    ],
)
def test_system_registration_rejects_bad_input(api_client, service_key, body):
    response = api_client.post(
        "/api/system/forms",
        data=json.dumps(body),
        content_type="application/json",
        headers={"X-API-Key": service_key},
    )
    assert response.status_code == 400
    assert "error" in response.json()
    assert CardForm.objects.count() == 0


@pytest.mark.django_db
def test_system_registration_needs_permitted_key(api_client):
    _, weak_key = api_key_create(created_by=None, name="readonly", permissions=[])
    body = json.dumps({"name": "X", "form_type": "data", "schema_definition": {}})

    assert api_client.post("/api/system/forms", data=body, content_type="application/json").status_code == 401
    response = api_client.post(
        "/api/system/forms", data=body, content_type="application/json", headers={"X-API-Key": weak_key}
    )
    assert response.status_code == 401


def rpc(api_client, bearer, member, operation, **arguments):
    return api_client.post(
        f"/api/rpc/{operation}",
        data=json.dumps(arguments),
        content_type="application/json",
        headers=bearer(member),
    )


@pytest.mark.django_db
def test_rpc_create_issue_accept_flow(api_client, bearer, alice, bob, data_form):
    created = rpc(api_client, bearer, alice, "createInstance", form_id=str(data_form.id), payload={"subject": "p"})
    assert created.status_code == 200
    instance_id = created.json()["data"]
    assert CardInstance.objects.filter(pk=instance_id, owner=alice).exists()

    issued = rpc(api_client, bearer, alice, "issue", instance_id=instance_id, recipient_member_id=str(bob.id))
    assert issued.status_code == 200
    issuance_id = issued.json()["data"]["issuance_id"]

    accepted = rpc(api_client, bearer, bob, "resolve", issuance_id=issuance_id, resolution="accepted")
    assert accepted.status_code == 200
    assert accepted.json() == {"data": None}

    seen = rpc(api_client, bearer, bob, "getIssuedCardInstance", issuance_id=issuance_id)
    assert seen.json()["data"]["id"] == instance_id

    trail = rpc(api_client, bearer, bob, "getAuditTrail", entity_type="card_issuance", entity_id=issuance_id)
    assert [e["action"] for e in trail.json()["data"]] == ["card_issued", "card_accepted"]

    mine = rpc(api_client, bearer, alice, "getMyRecentAudit", limit=1)
    assert [e["action"] for e in mine.json()["data"]] == ["card_issued"]


@pytest.mark.django_db
def test_rpc_supersede_and_lineage(api_client, bearer, alice, data_form):
    v1 = rpc(api_client, bearer, alice, "createInstance", form_id=str(data_form.id), payload={"subject": "a"}).json()["data"]
    v2 = rpc(api_client, bearer, alice, "supersededCreate", old_instance_id=v1, new_payload={"subject": "b"}).json()["data"]

    again = rpc(api_client, bearer, alice, "supersededCreate", old_instance_id=v1, new_payload={"subject": "c"})
    assert again.status_code == 409
    assert again.json()["error_code"] == "ALREADY_SUPERSEDED"
    assert again.json()["extra"]["current_state"] == "superseded"

    lineage = rpc(api_client, bearer, alice, "getLineage", instance_id=v2).json()["data"]
    assert [(e["version_number"], e["is_current"]) for e in lineage] == [(1, False), (2, True)]
    assert [e["payload"] for e in lineage] == [{"subject": "a"}, {"subject": "b"}]
    assert {e["form_id"] for e in lineage} == {str(data_form.id)}


@pytest.mark.django_db
def test_rpc_error_shapes(api_client, bearer, alice, data_form):
    unknown = rpc(api_client, bearer, alice, "dropTables")
    assert unknown.status_code == 404
    assert unknown.json()["error_code"] == "UNKNOWN_OPERATION"

    missing = rpc(api_client, bearer, alice, "createInstance", form_id=str(data_form.id))
    assert missing.status_code == 400
    assert missing.json()["error_code"] == "MISSING_ARGUMENT"
    assert "payload" in missing.json()["errors"]

    invalid = rpc(api_client, bearer, alice, "createInstance", form_id=str(data_form.id), payload={})
    assert invalid.status_code == 422
    body = invalid.json()
    assert set(body) == {"error_code", "error_message", "errors", "extra"}
    assert body["error_code"] == "PAYLOAD_INVALID"


@pytest.mark.django_db
def test_rpc_requires_a_member(api_client):
    response = api_client.post("/api/rpc/getMyRecentAudit", data="{}", content_type="application/json")
    assert response.status_code == 401


@pytest.mark.django_db
def test_rest_envelope_on_domain_error(api_client, bearer, alice, data_form):
    response = api_client.post(
        "/api/instances",
        data=json.dumps({"form_id": str(data_form.id), "payload": {"subject": 1}}),
        content_type="application/json",
        headers=bearer(alice),
    )
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "PAYLOAD_INVALID"
    assert "$.subject" in body["errors"]


@pytest.mark.django_db
def test_rest_issue_and_receive(api_client, bearer, alice, bob, data_form):
    created = api_client.post(
        "/api/instances",
        data=json.dumps({"form_id": str(data_form.id), "payload": {"subject": "p"}}),
        content_type="application/json",
        headers=bearer(alice),
    )
    assert created.status_code == 201
    instance_id = created.json()["data"]["id"]

    issued = api_client.post(
        "/api/issuances",
        data=json.dumps({"instance_id": instance_id, "invitee_locator": "bob@example.org"}),
        content_type="application/json",
        headers=bearer(alice),
    )
    assert issued.status_code == 201
    assert issued.json()["data"]["delivery_id"]

    received = api_client.get("/api/issuances/received", {"pending_only": "true"}, headers=bearer(bob))
    assert received.status_code == 200
    assert received.json()["data"]["pagination"]["count"] == 1
