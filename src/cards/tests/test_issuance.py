import pytest

from src.auditaction.models import AuditAction, AuditLog
from src.cards.exceptions import (
    AlreadySuperseded,
    InvalidRecipient,
    InvalidResolution,
    InvalidStatus,
    NotIssuer,
    NotOwner,
    NotRecipient,
)
from src.cards.instances.services import instance_create, instance_supersede
from src.cards.issuance import selectors, services
from src.cards.models import CardDelivery, CardIssuance, IssuanceStatus


@pytest.fixture
def instance(alice, data_form):
    return instance_create(form_id=data_form.id, payload={"subject": "patient-1"}, owner=alice)


@pytest.fixture
def issued(instance, alice, bob):
    return services.issue(instance_id=instance.id, recipient_member_id=str(bob.id), issuer=alice)


@pytest.mark.django_db
def test_issue_creates_issuance_and_delivery(issued, instance, alice, bob):
    assert issued.status == IssuanceStatus.ISSUED
    assert issued.recipient_member == bob
    assert issued.invitee_locator is None

    delivery = CardDelivery.objects.get(issuance=issued)
    assert delivery.status == IssuanceStatus.ISSUED
    assert delivery.recipient_member == bob

    entry = AuditLog.objects.get(action=AuditAction.CARD_ISSUED)
    assert entry.entity_id == str(issued.id)
    assert entry.lifecycle_context == {
        "instance_id": str(instance.id),
        "issuer_id": str(alice.id),
        "recipient_member_id": str(bob.id),
    }


@pytest.mark.django_db
@pytest.mark.parametrize(
    "recipient",
    [
        {},
        {"recipient_member_id": "", "invitee_locator": "  "},
        {"recipient_member_id": "x", "invitee_locator": "someone@example.org"},
        {"recipient_member_id": "00000000-0000-0000-0000-00000000000f"},
    ],
)
def test_issue_requires_exactly_one_known_recipient(instance, alice, recipient):
    with pytest.raises(InvalidRecipient):
        services.issue(instance_id=instance.id, issuer=alice, **recipient)
    assert CardIssuance.objects.count() == 0
    assert CardDelivery.objects.count() == 0


@pytest.mark.django_db
def test_only_owner_can_issue(instance, bob, carol):
    with pytest.raises(NotOwner):
        services.issue(instance_id=instance.id, recipient_member_id=str(carol.id), issuer=bob)


@pytest.mark.django_db
def test_superseded_version_cannot_be_issued(instance, alice, bob):
    instance_supersede(old_instance_id=instance.id, new_payload={"subject": "patient-2"}, owner=alice)
    with pytest.raises(AlreadySuperseded):
        services.issue(instance_id=instance.id, recipient_member_id=str(bob.id), issuer=alice)


@pytest.mark.django_db
@pytest.mark.parametrize("resolution, action", [("accepted", AuditAction.CARD_ACCEPTED), ("rejected", AuditAction.CARD_REJECTED)])
def test_recipient_resolves(issued, bob, resolution, action):
    result = services.resolve(issuance_id=issued.id, resolution=resolution, recipient=bob)

    assert result.status == resolution
    assert result.resolved_at is not None
    assert CardDelivery.objects.get(issuance=issued).status == resolution
    assert AuditLog.objects.filter(action=action, entity_id=str(issued.id)).count() == 1


@pytest.mark.django_db
def test_resolve_checks_resolution_and_recipient(issued, alice, carol, bob):
    with pytest.raises(InvalidResolution):
        services.resolve(issuance_id=issued.id, resolution="revoked", recipient=bob)
    with pytest.raises(NotRecipient):
        services.resolve(issuance_id=issued.id, resolution="accepted", recipient=carol)
    with pytest.raises(NotRecipient):
        services.resolve(issuance_id=issued.id, resolution="accepted", recipient=alice)
    with pytest.raises(NotRecipient):
        services.resolve(issuance_id="00000000-0000-0000-0000-000000000003", resolution="accepted", recipient=bob)


@pytest.mark.django_db
def test_resolution_is_single_shot(issued, bob):
    services.resolve(issuance_id=issued.id, resolution="accepted", recipient=bob)

    with pytest.raises(InvalidStatus) as exc:
        services.resolve(issuance_id=issued.id, resolution="rejected", recipient=bob)
    assert exc.value.extra["current_status"] == "accepted"


@pytest.mark.django_db
def test_accepted_can_only_be_revoked(issued, alice, bob):
    services.resolve(issuance_id=issued.id, resolution="accepted", recipient=bob)
    revoked = services.revoke(issuance_id=issued.id, issuer=alice)

    assert revoked.status == IssuanceStatus.REVOKED
    assert revoked.revoked_at is not None
    assert CardDelivery.objects.get(issuance=issued).status == IssuanceStatus.REVOKED

    entry = AuditLog.objects.get(action=AuditAction.CARD_REVOKED)
    assert entry.lifecycle_context["previous_status"] == "accepted"


@pytest.mark.django_db
@pytest.mark.parametrize("terminal", ["rejected", "revoked"])
def test_terminal_states_refuse_every_transition(issued, alice, bob, terminal):
    if terminal == "rejected":
        services.resolve(issuance_id=issued.id, resolution="rejected", recipient=bob)
    else:
        services.revoke(issuance_id=issued.id, issuer=alice)

    for call in (
        lambda: services.resolve(issuance_id=issued.id, resolution="accepted", recipient=bob),
        lambda: services.resolve(issuance_id=issued.id, resolution="rejected", recipient=bob),
        lambda: services.revoke(issuance_id=issued.id, issuer=alice),
    ):
        with pytest.raises(InvalidStatus) as exc:
            call()
        assert exc.value.extra["current_status"] == terminal

    issued.refresh_from_db()
    assert issued.status == terminal


@pytest.mark.django_db
def test_only_issuer_revokes(issued, bob):
    with pytest.raises(NotIssuer):
        services.revoke(issuance_id=issued.id, issuer=bob)
    with pytest.raises(NotIssuer):
        services.revoke(issuance_id="not-an-id", issuer=bob)


@pytest.mark.django_db
def test_invitee_issuance_resolved_by_matching_member(instance, alice, make_member):
    issuance = services.issue(instance_id=instance.id, invitee_locator="  Dana@Example.org ", issuer=alice)
    assert issuance.invitee_locator == "dana@example.org"
    assert issuance.recipient_member is None

    stranger = make_member("erin@example.org")
    with pytest.raises(NotRecipient):
        services.resolve(issuance_id=issuance.id, resolution="accepted", recipient=stranger)

    dana = make_member("dana@example.org")
    assert [d.issuance_id for d in selectors.delivery_list_for_recipient(member=dana)] == [issuance.id]

    services.resolve(issuance_id=issuance.id, resolution="accepted", recipient=dana)
    issuance.refresh_from_db()
    assert issuance.status == IssuanceStatus.ACCEPTED


@pytest.mark.django_db
def test_issued_instance_visible_while_live(issued, instance, alice, bob, carol):
    assert services.issued_instance_get(issuance_id=issued.id, caller=bob) == instance
    assert services.issued_instance_get(issuance_id=issued.id, caller=alice) == instance

    with pytest.raises(NotRecipient):
        services.issued_instance_get(issuance_id=issued.id, caller=carol)

    services.revoke(issuance_id=issued.id, issuer=alice)
    with pytest.raises(InvalidStatus):
        services.issued_instance_get(issuance_id=issued.id, caller=bob)


@pytest.mark.django_db
def test_issued_and_received_lists(issued, alice, bob):
    assert list(selectors.issuance_list_issued_by(issuer=alice)) == [issued]
    assert selectors.issuance_list_issued_by(issuer=bob).count() == 0
    assert selectors.delivery_list_for_recipient(member=bob, pending_only=True).count() == 1

    services.resolve(issuance_id=issued.id, resolution="accepted", recipient=bob)
    assert selectors.delivery_list_for_recipient(member=bob, pending_only=True).count() == 0
    assert selectors.delivery_list_for_recipient(member=bob).count() == 1
