from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from src.auditaction.models import AuditAction, AuditEntityType
from src.auditaction.services import audit_action_create
from src.cards.exceptions import InvalidFormType, InvalidStatus
from src.cards.models import CardForm, CardFormType
from src.cards.registry.selectors import get_form_for_update
from src.cards.validation import get_payload_validator
from src.core.exceptions import DomainValidationError

logger = logging.getLogger(__name__)


def _registration_mode(actor) -> str:
    return "member" if getattr(actor, "pk", None) else "system"


def _clean_definition(name, form_type, schema_definition) -> str:
    """Shared checks for every way a form enters the registry. Returns the trimmed name."""
    if form_type not in CardFormType.values:
        raise InvalidFormType(form_type)
    clean_name = (name or "").strip() if isinstance(name, str) else ""
    if not clean_name:
        raise DomainValidationError(message="name is required", errors={"name": ["This field is required"]})
    get_payload_validator().check_schema(schema_definition)
    return clean_name


@transaction.atomic
def form_register(*, name: str, form_type: str, schema_definition: dict, actor=None, request=None) -> CardForm:
    """
    Register a form in one step. actor=None is the system (bootstrap) path;
    both paths share validation and the audit contract.
    """
    clean_name = _clean_definition(name, form_type, schema_definition)
    now = timezone.now()
    form = CardForm.objects.create(
        name=clean_name,
        form_type=form_type,
        schema_definition=schema_definition,
        status=CardForm.Status.REGISTERED,
        registered_at=now,
        registered_by=actor if getattr(actor, "pk", None) else None,
    )

    audit_action_create(
        actor=actor,
        action=AuditAction.FORM_REGISTERED,
        entity_type=AuditEntityType.CARD_FORM,
        entity_id=form.id,
        context={
            "form_name": form.name,
            "form_type": form.form_type,
            "registration_mode": _registration_mode(actor),
        },
        request=request,
    )
    logger.info("card form registered", extra={"form_id": str(form.id), "form_type": form.form_type})
    return form


@transaction.atomic
def form_draft_create(*, name: str, form_type: str, schema_definition: dict, actor, request=None) -> CardForm:
    clean_name = _clean_definition(name, form_type, schema_definition)
    form = CardForm.objects.create(
        name=clean_name,
        form_type=form_type,
        schema_definition=schema_definition,
        status=CardForm.Status.DRAFT,
    )
    audit_action_create(
        actor=actor,
        action=AuditAction.FORM_DRAFTED,
        entity_type=AuditEntityType.CARD_FORM,
        entity_id=form.id,
        context={"form_name": form.name, "form_type": form.form_type},
        request=request,
    )
    return form


@transaction.atomic
def form_promote(*, form_id, actor, request=None) -> CardForm:
    """Draft -> registered. The schema is re-checked since validators may have changed."""
    form = get_form_for_update(form_id)
    if form.status != CardForm.Status.DRAFT:
        raise InvalidStatus(form.status, "register")

    get_payload_validator().check_schema(form.schema_definition)

    form.status = CardForm.Status.REGISTERED
    form.registered_at = timezone.now()
    form.registered_by = actor if getattr(actor, "pk", None) else None
    form.save(update_fields=["status", "registered_at", "registered_by", "updated_at"])

    audit_action_create(
        actor=actor,
        action=AuditAction.FORM_REGISTERED,
        entity_type=AuditEntityType.CARD_FORM,
        entity_id=form.id,
        context={
            "form_name": form.name,
            "form_type": form.form_type,
            "registration_mode": _registration_mode(actor),
            "promoted_from": CardForm.Status.DRAFT.value,
        },
        request=request,
    )
    return form
