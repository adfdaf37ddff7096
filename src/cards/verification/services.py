"""
Agent verification.

Answers "what may this agent do right now" from stored state: the agent's
entity CARD gives its standing and operator, the accepted use CARDs naming
it give the active grants. Payloads are free-form, so every field read here
is optional and malformed values are skipped rather than reported.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, time
from datetime import timezone as dt_timezone
from typing import Any

from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from src.auditaction.models import AuditAction, AuditEntityType
from src.auditaction.services import audit_action_create
from src.cards.models import CardForm, CardFormType, CardInstance, CardIssuance, IssuanceStatus
from src.common.utils import URN_UUID_PREFIX, as_urn, parse_uuid

logger = logging.getLogger(__name__)


class EntityStatus:
    ACTIVE = "active"
    REVOKED = "revoked"
    SUSPENDED = "suspended"
    UNKNOWN = "unknown"


ENTITY_STATUS_BY_ISSUANCE = {
    IssuanceStatus.ACCEPTED.value: EntityStatus.ACTIVE,
    IssuanceStatus.REVOKED.value: EntityStatus.REVOKED,
    IssuanceStatus.REJECTED.value: EntityStatus.REVOKED,
    IssuanceStatus.ISSUED.value: EntityStatus.SUSPENDED,
}

DEFAULT_ENFORCEMENT_TIER = "contractual"


@dataclass(frozen=True)
class Operator:
    id: str = ""
    display_name: str = "Unknown"


@dataclass
class UseCardGrant:
    card_ref: str
    issuance_id: str
    scope_summary: dict[str, Any]
    effective: dict[str, str | None]
    prohibitions: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class VerificationResult:
    agent_id: str
    entity_status: str
    operator: Operator
    active_use_cards: list[UseCardGrant]
    verified_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _dig(data, *keys):
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _as_list(value) -> list:
    if value is None or value == "":
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]


def parse_instant(value) -> datetime | None:
    """ISO 8601 datetime or date; naive values are taken as UTC. Anything else is None."""
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    try:
        parsed = parse_datetime(raw)
        if parsed is None:
            day = parse_date(raw)
            parsed = datetime.combine(day, time.min) if day else None
    except ValueError:
        return None
    if parsed is None:
        return None
    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


def find_entity_instance(agent_id: str) -> CardInstance | None:
    """
    The entity instance an agent id refers to, by instance id, urn:uuid form
    or payload card.id. The current version wins over older ones, then the
    newest.
    """
    match = Q(payload__card__id=agent_id)
    pk = parse_uuid(agent_id)
    if pk is not None:
        match |= Q(pk=pk)
    return (
        CardInstance.objects.filter(
            form__form_type=CardFormType.ENTITY,
            form__status=CardForm.Status.REGISTERED,
        )
        .filter(match)
        .order_by("-is_current", "-created_at", "-id")
        .first()
    )


def entity_status_for(instance: CardInstance | None) -> str:
    if instance is None:
        return EntityStatus.UNKNOWN
    latest = (
        CardIssuance.objects.filter(instance=instance)
        .order_by("-issued_at", "-id")
        .values_list("status", flat=True)
        .first()
    )
    if latest is None:
        return EntityStatus.ACTIVE
    return ENTITY_STATUS_BY_ISSUANCE.get(latest, EntityStatus.UNKNOWN)


def operator_for(instance: CardInstance | None) -> Operator:
    if instance is None:
        return Operator()
    for holder in (_dig(instance.payload, "parties", "operator"), _dig(instance.payload, "card", "operator")):
        if isinstance(holder, dict):
            return Operator(
                id=str(holder.get("id") or ""),
                display_name=str(holder.get("display_name") or ""),
            )
    return Operator()


def _agent_forms(agent_id: str) -> set[str]:
    bare = agent_id[len(URN_UUID_PREFIX):] if agent_id.lower().startswith(URN_UUID_PREFIX) else agent_id
    return {agent_id, as_urn(bare)}


def _names_agent(issuance: CardIssuance, agent_forms: set[str], entity: CardInstance | None) -> bool:
    named = _dig(issuance.instance.payload, "parties", "agent", "id")
    if isinstance(named, str) and named in agent_forms:
        return True
    if entity is None:
        return False
    return entity.owner_id in (issuance.instance.owner_id, issuance.recipient_member_id)


def _matches_card_ref(instance: CardInstance, card_ref: str | None) -> bool:
    if not card_ref:
        return True
    return parse_uuid(card_ref) == instance.id


def _resources(claims) -> list[dict[str, Any]]:
    resources = []
    for item in _as_list(_dig(claims, "items")):
        resource = _dig(item, "resource")
        uri = _dig(resource, "uri")
        if not uri:
            continue
        label = _dig(resource, "display_name") or _dig(resource, "label") or None
        resources.append({"uri": uri, "label": label})
    return resources


def _prohibitions(policy) -> list[dict[str, Any]]:
    out = []
    for entry in _as_list(_dig(policy, "prohibitions")):
        if isinstance(entry, dict):
            code = entry.get("code") or entry.get("type") or entry
            tier = entry.get("enforcement_tier") or DEFAULT_ENFORCEMENT_TIER
        else:
            code, tier = entry, DEFAULT_ENFORCEMENT_TIER
        out.append({"code": code, "enforcement_tier": tier})
    return out


def scope_summary_for(payload) -> dict[str, list]:
    claims = _dig(payload, "claims") or {}
    policy = _dig(payload, "policy") or {}
    actions = _dig(claims, "allowed_actions") or _dig(policy, "allowed_actions") or []
    purpose = _dig(policy, "purpose") or _dig(claims, "purpose")
    return {
        "resources": _resources(claims),
        "actions": _as_list(actions),
        "purpose": _as_list(purpose),
    }


def _grant_for(issuance: CardIssuance, now: datetime) -> UseCardGrant | None:
    payload = issuance.instance.payload
    effective_from = parse_instant(_dig(payload, "lifecycle", "effective", "from"))
    effective_to = parse_instant(_dig(payload, "lifecycle", "effective", "to"))
    if effective_from and now < effective_from:
        return None
    if effective_to and now > effective_to:
        return None

    return UseCardGrant(
        card_ref=as_urn(issuance.instance_id),
        issuance_id=str(issuance.id),
        scope_summary=scope_summary_for(payload),
        effective={
            "from": (effective_from or issuance.issued_at).isoformat(),
            "to": effective_to.isoformat() if effective_to else None,
        },
        prohibitions=_prohibitions(_dig(payload, "policy")),
    )


def active_use_cards_for(agent_id: str, *, entity: CardInstance | None, card_ref: str | None, now: datetime) -> list[UseCardGrant]:
    issuances = (
        CardIssuance.objects.select_related("instance")
        .filter(
            status=IssuanceStatus.ACCEPTED,
            instance__form__form_type=CardFormType.USE,
            instance__form__status=CardForm.Status.REGISTERED,
        )
        .order_by("issued_at", "id")
    )
    agent_forms = _agent_forms(agent_id)

    grants = []
    for issuance in issuances:
        if not _names_agent(issuance, agent_forms, entity):
            continue
        if not _matches_card_ref(issuance.instance, card_ref):
            continue
        grant = _grant_for(issuance, now)
        if grant is not None:
            grants.append(grant)
    return grants


def _caller_ip(request) -> str | None:
    if request is None:
        return None
    return request.META.get("HTTP_X_FORWARDED_FOR") or None


def _audit_query(entity: CardInstance, result: VerificationResult, *, card_ref, request) -> None:
    try:
        audit_action_create(
            actor=None,
            action=AuditAction.VERIFICATION_QUERIED,
            entity_type=AuditEntityType.CARD_INSTANCE,
            entity_id=entity.id,
            context={
                "agent_id": result.agent_id,
                "card_ref": card_ref or None,
                "entity_status": result.entity_status,
                "active_use_card_count": len(result.active_use_cards),
                "queried_at": result.verified_at,
                "caller_ip": _caller_ip(request),
            },
            request=request,
        )
    except Exception:
        logger.exception("Failed to audit verification query", extra={"entity_id": str(entity.id)})


def verify(*, agent_id: str, card_ref: str | None = None, now: datetime | None = None, request=None) -> VerificationResult:
    now = now or timezone.now()
    entity = find_entity_instance(agent_id)

    result = VerificationResult(
        agent_id=agent_id,
        entity_status=entity_status_for(entity),
        operator=operator_for(entity),
        active_use_cards=active_use_cards_for(agent_id, entity=entity, card_ref=card_ref, now=now),
        verified_at=now.isoformat(),
    )

    if entity is not None:
        _audit_query(entity, result, card_ref=card_ref, request=request)
    return result
