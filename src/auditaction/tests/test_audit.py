import uuid
from types import SimpleNamespace as NS

import pytest
from django.test import RequestFactory

from src.auditaction.models import AppendOnlyError, AuditAction, AuditEntityType, AuditLog
from src.auditaction.presenters import audit_entry_to_dto
from src.auditaction.selectors import audit_recent_for_actor, audit_trail, audit_trail_for_viewer, clamp_recent_limit
from src.auditaction.services import audit_action_create
from src.cards.instances.services import instance_create, instance_supersede
from src.cards.issuance.services import issue, resolve, revoke
from src.core.exceptions import DomainPermissionError, DomainValidationError


def _record(actor=None, entity_id=None, **context):
    return audit_action_create(
        actor=actor,
        action=AuditAction.INSTANCE_CREATED,
        entity_type=AuditEntityType.CARD_INSTANCE,
        entity_id=entity_id or uuid.uuid4(),
        context=context,
    )


@pytest.mark.django_db
def test_entries_are_append_only(alice):
    entry = _record(alice)

    entry.action = AuditAction.CARD_REVOKED
    with pytest.raises(AppendOnlyError):
        entry.save()
    with pytest.raises(AppendOnlyError):
        entry.delete()
    with pytest.raises(AppendOnlyError):
        AuditLog.objects.filter(pk=entry.pk).update(action=AuditAction.CARD_REVOKED)
    with pytest.raises(AppendOnlyError):
        AuditLog.objects.all().delete()

    assert AuditLog.objects.get(pk=entry.pk).action == AuditAction.INSTANCE_CREATED


@pytest.mark.django_db
def test_context_is_json_sanitised(alice):
    ref = uuid.uuid4()
    entry = _record(alice, when=NS(isoformat=lambda: "2026-01-01T00:00:00+00:00"), ref=ref, member=alice, tags={"a", "a"})

    entry.refresh_from_db()
    assert entry.lifecycle_context == {
        "when": "2026-01-01T00:00:00+00:00",
        "ref": str(ref),
        "member": str(alice.pk),
        "tags": ["a"],
    }


@pytest.mark.django_db
def test_request_metadata_is_captured():
    request = RequestFactory().post(
        "/api/rpc/issue",
        HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1",
        HTTP_USER_AGENT="pytest",
        HTTP_X_REQUEST_ID="req-42",
    )
    entry = audit_action_create(
        actor=None,
        action=AuditAction.VERIFICATION_QUERIED,
        entity_type=AuditEntityType.CARD_INSTANCE,
        entity_id=uuid.uuid4(),
        request=request,
    )
    assert entry.ip_address == "203.0.113.7"
    assert entry.user_agent == "pytest"
    assert entry.request_id == "req-42"
    assert entry.actor is None


@pytest.mark.django_db
def test_every_lifecycle_call_writes_exactly_one_entry(alice, bob, data_form):
    def added(fn):
        before = AuditLog.objects.count()
        result = fn()
        assert AuditLog.objects.count() == before + 1
        return result, AuditLog.objects.order_by("-created_at").first()

    v1, entry = added(lambda: instance_create(form_id=data_form.id, payload={"subject": "a"}, owner=alice))
    assert (entry.action, entry.entity_id) == (AuditAction.INSTANCE_CREATED, str(v1.id))

    v2, entry = added(lambda: instance_supersede(old_instance_id=v1.id, new_payload={"subject": "b"}, owner=alice))
    assert (entry.action, entry.entity_id) == (AuditAction.CARD_SUPERSEDED, str(v1.id))

    issuance, entry = added(lambda: issue(instance_id=v2.id, recipient_member_id=str(bob.id), issuer=alice))
    assert (entry.action, entry.entity_id) == (AuditAction.CARD_ISSUED, str(issuance.id))

    _, entry = added(lambda: resolve(issuance_id=issuance.id, resolution="accepted", recipient=bob))
    assert (entry.action, entry.entity_id) == (AuditAction.CARD_ACCEPTED, str(issuance.id))

    _, entry = added(lambda: revoke(issuance_id=issuance.id, issuer=alice))
    assert (entry.action, entry.entity_id) == (AuditAction.CARD_REVOKED, str(issuance.id))


@pytest.mark.django_db
def test_failed_audit_rolls_back_the_mutation(alice, data_form, monkeypatch):
    from src.cards.instances import services
    from src.cards.models import CardInstance

    def broken(**kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(services, "audit_action_create", broken)
    with pytest.raises(RuntimeError):
        services.instance_create(form_id=data_form.id, payload={"subject": "a"}, owner=alice)

    assert CardInstance.objects.count() == 0


@pytest.mark.django_db
def test_trail_oldest_first_and_recent_newest_first(alice):
    entity = uuid.uuid4()
    first = _record(alice, entity_id=entity, step=1)
    second = _record(alice, entity_id=entity, step=2)
    _record(alice, step=3)

    assert list(audit_trail(entity_type=AuditEntityType.CARD_INSTANCE, entity_id=entity)) == [first, second]

    recent = audit_recent_for_actor(actor=alice, limit=2)
    assert [e.lifecycle_context["step"] for e in recent] == [3, 2]


@pytest.mark.parametrize("raw, expected", [(None, 20), ("abc", 20), (0, 1), (-5, 1), (5, 5), (10_000, 200)])
def test_clamp_recent_limit(raw, expected):
    assert clamp_recent_limit(raw) == expected


@pytest.mark.django_db
def test_trail_visibility(alice, bob, carol, data_form):
    instance = instance_create(form_id=data_form.id, payload={"subject": "a"}, owner=alice)
    issue(instance_id=instance.id, recipient_member_id=str(bob.id), issuer=alice)

    assert audit_trail_for_viewer(viewer=alice, entity_type="card_instance", entity_id=str(instance.id)).count() == 1
    assert audit_trail_for_viewer(viewer=bob, entity_type="card_instance", entity_id=str(instance.id)).count() == 1
    with pytest.raises(DomainPermissionError):
        audit_trail_for_viewer(viewer=carol, entity_type="card_instance", entity_id=str(instance.id))

    assert audit_trail_for_viewer(viewer=carol, entity_type="card_form", entity_id=str(data_form.id)).count() == 1

    with pytest.raises(DomainValidationError):
        audit_trail_for_viewer(viewer=alice, entity_type="organization", entity_id=str(instance.id))


def test_audit_entry_dto():
    entry = NS(
        id="e",
        action="card_issued",
        actor_id=None,
        entity_type="card_issuance",
        entity_id="iss",
        lifecycle_context=None,
        created_at=NS(isoformat=lambda: "2026-01-08T10:00:00Z"),
    )
    dto = audit_entry_to_dto(entry)
    assert dto["actor_id"] is None
    assert dto["lifecycle_context"] == {}
