from __future__ import annotations

from django.conf import settings
from django.db.models import QuerySet

from src.auditaction.models import AuditEntityType, AuditLog
from src.cards.policies import can_view_audit_trail
from src.core.exceptions import DomainPermissionError, DomainValidationError


def audit_trail(*, entity_type: str, entity_id) -> QuerySet[AuditLog]:
    """Every entry recorded against one entity, oldest first."""
    return (
        AuditLog.objects.select_related("actor")
        .filter(entity_type=entity_type, entity_id=str(entity_id))
        .order_by("created_at", "id")
    )


def clamp_recent_limit(limit) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        value = settings.CARDS_AUDIT_RECENT_DEFAULT_LIMIT
    return min(max(1, value), settings.CARDS_AUDIT_RECENT_MAX_LIMIT)


def audit_recent_for_actor(*, actor, limit=None) -> list[AuditLog]:
    """The caller's own most recent actions, newest first."""
    qs = (
        AuditLog.objects.select_related("actor")
        .filter(actor=actor)
        .order_by("-created_at", "-id")
    )
    return list(qs[: clamp_recent_limit(limit)])


def audit_trail_for_viewer(*, viewer, entity_type: str, entity_id) -> QuerySet[AuditLog]:
    """audit_trail restricted to members related to the entity."""
    if entity_type not in AuditEntityType.values:
        raise DomainValidationError(
            message="Unknown entity_type",
            code="INVALID_ENTITY_TYPE",
            errors={"entity_type": [f"must be one of {', '.join(AuditEntityType.values)}"]},
        )
    if not can_view_audit_trail(viewer, entity_type, entity_id):
        raise DomainPermissionError(message="You cannot view this audit trail")
    return audit_trail(entity_type=entity_type, entity_id=entity_id)
