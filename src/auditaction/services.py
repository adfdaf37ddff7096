from __future__ import annotations

import uuid
from typing import Any

from django.db import transaction
from django.http import HttpRequest

from src.auditaction.models import AuditLog
from src.core.apis import request_id_for

REQUEST_ID_MAX_LENGTH = 64


def client_ip(request: HttpRequest) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.META.get("REMOTE_ADDR") or None


def _request_meta(request: HttpRequest | None) -> dict[str, Any]:
    if request is None:
        return {"ip_address": None, "user_agent": "", "request_id": ""}
    return {
        "ip_address": client_ip(request),
        "user_agent": request.META.get("HTTP_USER_AGENT", ""),
        "request_id": request_id_for(request)[:REQUEST_ID_MAX_LENGTH],
    }


def to_json_safe(value: Any) -> Any:
    """Reduce a lifecycle context to JSON types. Rows become their primary key."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(to_json_safe(key)): to_json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_safe(item) for item in value]
    if isinstance(value, uuid.UUID):
        return str(value)
    if callable(getattr(value, "isoformat", None)):
        return value.isoformat()
    if getattr(value, "pk", None) is not None:
        return to_json_safe(value.pk)
    return str(value)


@transaction.atomic
def audit_action_create(
    *,
    actor,
    action: str,
    entity_type: str,
    entity_id,
    context: dict[str, Any] | None = None,
    request: HttpRequest | None = None,
) -> AuditLog:
    """
    Append a single audit entry.

    Runs in a savepoint of the caller's transaction, so a failure here
    rolls back the lifecycle mutation being audited. actor=None records a
    system-initiated action.
    """
    return AuditLog.objects.create(
        actor=actor if getattr(actor, "pk", None) else None,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        lifecycle_context=to_json_safe(context or {}),
        **_request_meta(request),
    )
