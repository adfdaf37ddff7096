from __future__ import annotations

from django.db.models import Q, QuerySet

from src.cards.models import CardDelivery, CardIssuance, IssuanceStatus
from src.cards.policies import normalize_locator
from src.common.utils import parse_uuid


def issuance_get(issuance_id) -> CardIssuance | None:
    pk = parse_uuid(issuance_id)
    if pk is None:
        return None
    return (
        CardIssuance.objects.select_related("instance", "instance__form", "issuer", "recipient_member")
        .filter(pk=pk)
        .first()
    )


def issuance_list_issued_by(*, issuer, status: str | None = None) -> QuerySet[CardIssuance]:
    qs = (
        CardIssuance.objects.select_related("instance", "instance__form", "recipient_member")
        .filter(issuer=issuer)
        .order_by("-issued_at", "-id")
    )
    if status:
        qs = qs.filter(status=status)
    return qs


def _addressed_to(member) -> Q:
    cond = Q(recipient_member=member)
    email = (getattr(member, "email", "") or "").strip()
    if email:
        cond |= Q(recipient_member__isnull=True, invitee_locator=normalize_locator(email))
    return cond


def delivery_list_for_recipient(*, member, pending_only: bool = False) -> QuerySet[CardDelivery]:
    qs = (
        CardDelivery.objects.select_related(
            "issuance", "issuance__instance", "issuance__instance__form", "issuance__issuer"
        )
        .filter(_addressed_to(member))
        .order_by("-created_at", "-id")
    )
    if pending_only:
        qs = qs.filter(status=IssuanceStatus.ISSUED)
    return qs
