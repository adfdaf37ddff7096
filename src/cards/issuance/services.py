from __future__ import annotations

from django.db import transaction
from django.utils import timezone

from src.auditaction.models import AuditAction, AuditEntityType
from src.auditaction.services import audit_action_create
from src.cards.exceptions import (
    AlreadySuperseded,
    InvalidRecipient,
    InvalidResolution,
    InvalidStatus,
    NotIssuer,
    NotOwner,
    NotRecipient,
)
from src.cards.instances.selectors import get_instance_for_update
from src.cards.issuance.selectors import issuance_get
from src.cards.models import (
    CardDelivery,
    CardInstance,
    CardIssuance,
    IssuanceStatus,
    statuses_allowing,
)
from src.cards.policies import is_issuer, is_owner, is_recipient, normalize_locator
from src.common.utils import parse_uuid
from src.users.models import User

RESOLUTION_ACTIONS = {
    IssuanceStatus.ACCEPTED.value: AuditAction.CARD_ACCEPTED,
    IssuanceStatus.REJECTED.value: AuditAction.CARD_REJECTED,
}


def _recipient_from(recipient_member_id, invitee_locator) -> tuple[User | None, str | None]:
    has_member = recipient_member_id not in (None, "")
    locator = normalize_locator(invitee_locator) if isinstance(invitee_locator, str) else ""
    if has_member == bool(locator):
        raise InvalidRecipient()
    if not has_member:
        return None, locator

    pk = parse_uuid(recipient_member_id)
    member = User.objects.filter(pk=pk, is_active=True).first() if pk else None
    if member is None:
        raise InvalidRecipient("recipient_member_id does not name an active member")
    return member, None


@transaction.atomic
def issue(*, instance_id, issuer, recipient_member_id=None, invitee_locator=None, request=None) -> CardIssuance:
    """Issuance, its delivery and the audit entry are written together or not at all."""
    member, locator = _recipient_from(recipient_member_id, invitee_locator)

    pk = parse_uuid(instance_id)
    instance = CardInstance.objects.filter(pk=pk).first() if pk else None
    if instance is None or not is_owner(issuer, instance):
        raise NotOwner()

    instance = get_instance_for_update(instance.pk)
    if not instance.is_current:
        raise AlreadySuperseded(instance.superseded_by_id)

    issuance = CardIssuance.objects.create(
        instance=instance,
        issuer=issuer,
        recipient_member=member,
        invitee_locator=locator,
        status=IssuanceStatus.ISSUED,
    )
    CardDelivery.objects.create(
        issuance=issuance,
        recipient_member=member,
        invitee_locator=locator,
        status=IssuanceStatus.ISSUED,
    )

    recipient = {"recipient_member_id": member.id} if member else {"invitee_locator": locator}
    audit_action_create(
        actor=issuer,
        action=AuditAction.CARD_ISSUED,
        entity_type=AuditEntityType.CARD_ISSUANCE,
        entity_id=issuance.id,
        context={"instance_id": instance.id, "issuer_id": issuer.id, **recipient},
        request=request,
    )
    return issuance


def _transition(issuance: CardIssuance, *, target: str, attempted: str, **stamps) -> CardIssuance:
    """
    Check-and-set on status. Whoever loses a race, or finds the issuance in
    a status that cannot reach target, gets InvalidStatus with the status
    actually stored.
    """
    sources = statuses_allowing(target)
    moved = CardIssuance.objects.filter(pk=issuance.pk, status__in=sources).update(status=target, **stamps)
    if not moved:
        current = CardIssuance.objects.filter(pk=issuance.pk).values_list("status", flat=True).first()
        raise InvalidStatus(current, attempted)

    CardDelivery.objects.filter(issuance_id=issuance.pk).update(status=target, updated_at=timezone.now())
    issuance.refresh_from_db()
    return issuance


@transaction.atomic
def resolve(*, issuance_id, resolution: str, recipient, request=None) -> CardIssuance:
    if not isinstance(resolution, str) or resolution not in RESOLUTION_ACTIONS:
        raise InvalidResolution(resolution)

    issuance = issuance_get(issuance_id)
    if issuance is None or not is_recipient(recipient, issuance):
        raise NotRecipient()

    issuance = _transition(issuance, target=resolution, attempted=resolution, resolved_at=timezone.now())

    audit_action_create(
        actor=recipient,
        action=RESOLUTION_ACTIONS[resolution],
        entity_type=AuditEntityType.CARD_ISSUANCE,
        entity_id=issuance.id,
        context={
            "instance_id": issuance.instance_id,
            "resolution": resolution,
            "resolved_at": issuance.resolved_at,
        },
        request=request,
    )
    return issuance


@transaction.atomic
def revoke(*, issuance_id, issuer, request=None) -> CardIssuance:
    issuance = issuance_get(issuance_id)
    if issuance is None or not is_issuer(issuer, issuance):
        raise NotIssuer()

    previous_status = issuance.status
    issuance = _transition(
        issuance,
        target=IssuanceStatus.REVOKED.value,
        attempted="revoke",
        revoked_at=timezone.now(),
    )

    audit_action_create(
        actor=issuer,
        action=AuditAction.CARD_REVOKED,
        entity_type=AuditEntityType.CARD_ISSUANCE,
        entity_id=issuance.id,
        context={
            "instance_id": issuance.instance_id,
            "revoked_at": issuance.revoked_at,
            "previous_status": previous_status,
        },
        request=request,
    )
    return issuance


def issued_instance_get(*, issuance_id, caller) -> CardInstance:
    """The instance behind a live issuance, for its recipient or issuer."""
    issuance = issuance_get(issuance_id)
    if issuance is None or not (is_recipient(caller, issuance) or is_issuer(caller, issuance)):
        raise NotRecipient()
    if issuance.status not in (IssuanceStatus.ISSUED, IssuanceStatus.ACCEPTED):
        raise InvalidStatus(issuance.status, "view")
    return issuance.instance
