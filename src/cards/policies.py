from __future__ import annotations

from src.auditaction.models import AuditEntityType
from src.common.utils import parse_uuid
from src.cards.models import CardInstance, CardIssuance


def _same_member(a, b) -> bool:
    return a is not None and b is not None and getattr(a, "pk", a) == getattr(b, "pk", b)


def is_owner(member, instance: CardInstance) -> bool:
    return _same_member(instance.owner_id, member)


def is_issuer(member, issuance: CardIssuance) -> bool:
    return _same_member(issuance.issuer_id, member)


def normalize_locator(locator: str) -> str:
    value = (locator or "").strip()
    return value.lower() if "@" in value else value


def is_recipient(member, issuance: CardIssuance) -> bool:
    """The addressed member, or for invitees the member owning that e-mail."""
    if member is None:
        return False
    if issuance.recipient_member_id is not None:
        return _same_member(issuance.recipient_member_id, member)
    email = (getattr(member, "email", "") or "").strip().lower()
    return bool(email) and email == normalize_locator(issuance.invitee_locator or "")


def can_view_audit_trail(member, entity_type: str, entity_id) -> bool:
    """Forms are public to members; instances and issuances only to the parties involved."""
    if member is None:
        return False
    if getattr(member, "is_staff", False):
        return True
    if entity_type == AuditEntityType.CARD_FORM:
        return True

    pk = parse_uuid(entity_id)
    if pk is None:
        return False

    if entity_type == AuditEntityType.CARD_INSTANCE:
        instance = CardInstance.objects.filter(pk=pk).first()
        return instance is not None and can_view_instance(member, instance)

    if entity_type == AuditEntityType.CARD_ISSUANCE:
        issuance = CardIssuance.objects.filter(pk=pk).first()
        return issuance is not None and (is_issuer(member, issuance) or is_recipient(member, issuance))

    return False


def can_view_instance(member, instance: CardInstance) -> bool:
    """Owner, or a party to an issuance of any version in the lineage."""
    if member is None:
        return False
    if getattr(member, "is_staff", False) or is_owner(member, instance):
        return True
    return any(
        is_issuer(member, iss) or is_recipient(member, iss)
        for iss in CardIssuance.objects.filter(instance__lineage_id=instance.lineage_id)
    )
