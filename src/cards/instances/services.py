from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from src.api.exception_handler import constraint_name
from src.auditaction.models import AuditAction, AuditEntityType
from src.auditaction.services import audit_action_create
from src.cards.exceptions import AlreadySuperseded, FormNotRegistered, NotOwner, PayloadInvalid
from src.cards.instances.selectors import get_instance_for_update
from src.cards.models import CardForm, CardInstance
from src.cards.policies import is_owner
from src.cards.registry.selectors import form_get
from src.cards.validation import get_payload_validator
from src.common.utils import parse_uuid

logger = logging.getLogger(__name__)

LINEAGE_CONSTRAINTS = ("card_instance_single_current", "card_instance_lineage_version_unique")


def _ensure_registered(form: CardForm, *, actor, request=None) -> None:
    """
    The blocked attempt is audited before raising and outside any lifecycle
    transaction, so the entry survives the failure.
    """
    if form.is_registered:
        return
    audit_action_create(
        actor=actor,
        action=AuditAction.INSTANCE_CREATE_BLOCKED_UNREGISTERED_FORM,
        entity_type=AuditEntityType.CARD_FORM,
        entity_id=form.id,
        context={"form_id": form.id, "form_status": form.status},
        request=request,
    )
    raise FormNotRegistered(form.id, form.status)


def _validate_payload(form: CardForm, payload) -> None:
    if not isinstance(payload, dict):
        raise PayloadInvalid({"$": ["payload must be a JSON object"]})
    result = get_payload_validator().validate(form.schema_definition, payload)
    if not result.valid:
        raise PayloadInvalid(result.errors)


def instance_create(*, form_id, payload: dict, owner, request=None) -> CardInstance:
    form = form_get(form_id)
    _ensure_registered(form, actor=owner, request=request)
    _validate_payload(form, payload)

    with transaction.atomic():
        instance = CardInstance.objects.create(form=form, owner=owner, payload=payload)
        audit_action_create(
            actor=owner,
            action=AuditAction.INSTANCE_CREATED,
            entity_type=AuditEntityType.CARD_INSTANCE,
            entity_id=instance.id,
            context={
                "form_id": form.id,
                "form_type": form.form_type,
                "lineage_id": instance.lineage_id,
                "version": instance.version,
            },
            request=request,
        )
    return instance


def _owned_instance(instance_id, owner) -> CardInstance:
    pk = parse_uuid(instance_id)
    instance = CardInstance.objects.select_related("form").filter(pk=pk).first() if pk else None
    if instance is None or not is_owner(owner, instance):
        raise NotOwner()
    return instance


def instance_supersede(*, old_instance_id, new_payload: dict, owner, request=None) -> CardInstance:
    """
    Replace the current version of a lineage with a new one.

    Only one of several concurrent calls on the same version can win the
    is_current check-and-set; the others get AlreadySuperseded and nothing
    of theirs is written.
    """
    old = _owned_instance(old_instance_id, owner)
    if not old.is_current:
        raise AlreadySuperseded(old.superseded_by_id)

    form = old.form
    _ensure_registered(form, actor=owner, request=request)
    _validate_payload(form, new_payload)

    try:
        with transaction.atomic():
            locked = get_instance_for_update(old.pk)
            now = timezone.now()

            flipped = CardInstance.objects.filter(
                pk=locked.pk, is_current=True, superseded_by__isnull=True
            ).update(is_current=False, superseded_at=now, updated_at=now)
            if not flipped:
                locked.refresh_from_db(fields=["superseded_by"])
                raise AlreadySuperseded(locked.superseded_by_id)

            successor = CardInstance.objects.create(
                form=form,
                owner=locked.owner,
                payload=new_payload,
                lineage_id=locked.lineage_id,
                version=locked.version + 1,
                is_current=True,
            )
            CardInstance.objects.filter(pk=locked.pk, superseded_by__isnull=True).update(
                superseded_by=successor, updated_at=now
            )

            audit_action_create(
                actor=owner,
                action=AuditAction.CARD_SUPERSEDED,
                entity_type=AuditEntityType.CARD_INSTANCE,
                entity_id=locked.id,
                context={
                    "old_instance_id": locked.id,
                    "new_instance_id": successor.id,
                    "lineage_id": locked.lineage_id,
                    "version": successor.version,
                },
                request=request,
            )
    except IntegrityError as exc:
        if constraint_name(exc) not in LINEAGE_CONSTRAINTS:
            raise
        logger.info("supersede lost a race", extra={"instance_id": str(old.pk)})
        raise AlreadySuperseded()

    return successor
