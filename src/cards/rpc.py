"""
Named operation contract used by the web client.

Each operation takes keyed arguments and the authenticated member, and
returns a scalar, a row or a list of rows. Failures are domain errors that
the RPC controller reports as {error_code, error_message, errors, extra}.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from src.auditaction.presenters import audit_entry_to_dto
from src.auditaction.selectors import audit_recent_for_actor, audit_trail_for_viewer
from src.cards.instances.selectors import instance_lineage
from src.cards.instances.services import instance_create, instance_supersede
from src.cards.issuance.services import issue, issued_instance_get, resolve, revoke
from src.cards.presenters import instance_to_dto, lineage_entry_to_dto
from src.cards.registry.services import form_register
from src.core.exceptions import APIError


class UnknownOperation(APIError):
    def __init__(self, operation: str):
        super().__init__(message=f"Unknown operation: {operation}", code="UNKNOWN_OPERATION", status=404)


class MissingArgument(APIError):
    def __init__(self, missing: list[str]):
        super().__init__(
            message=f"Missing required argument(s): {', '.join(missing)}",
            code="MISSING_ARGUMENT",
            status=400,
            errors={name: ["This argument is required"] for name in missing},
        )


@dataclass(frozen=True)
class Operation:
    handler: Callable[..., Any]
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()


def _create_instance(caller, request, *, form_id, payload):
    return str(instance_create(form_id=form_id, payload=payload, owner=caller, request=request).id)


def _superseded_create(caller, request, *, old_instance_id, new_payload):
    successor = instance_supersede(
        old_instance_id=old_instance_id, new_payload=new_payload, owner=caller, request=request
    )
    return str(successor.id)


def _issue(caller, request, *, instance_id, recipient_member_id=None, invitee_locator=None):
    issuance = issue(
        instance_id=instance_id,
        recipient_member_id=recipient_member_id,
        invitee_locator=invitee_locator,
        issuer=caller,
        request=request,
    )
    return {"issuance_id": str(issuance.id), "delivery_id": str(issuance.delivery.id)}


def _resolve(caller, request, *, issuance_id, resolution):
    resolve(issuance_id=issuance_id, resolution=resolution, recipient=caller, request=request)
    return None


def _revoke(caller, request, *, issuance_id):
    revoke(issuance_id=issuance_id, issuer=caller, request=request)
    return None


def _get_lineage(caller, request, *, instance_id):
    return [lineage_entry_to_dto(v) for v in instance_lineage(instance_id, viewer=caller)]


def _get_audit_trail(caller, request, *, entity_type, entity_id):
    entries = audit_trail_for_viewer(viewer=caller, entity_type=entity_type, entity_id=entity_id)
    return [audit_entry_to_dto(e) for e in entries]


def _get_my_recent_audit(caller, request, *, limit=None):
    return [audit_entry_to_dto(e) for e in audit_recent_for_actor(actor=caller, limit=limit)]


def _get_issued_card_instance(caller, request, *, issuance_id):
    return instance_to_dto(issued_instance_get(issuance_id=issuance_id, caller=caller))


def _register_form(caller, request, *, name, form_type, schema_definition):
    form = form_register(
        name=name, form_type=form_type, schema_definition=schema_definition, actor=caller, request=request
    )
    return str(form.id)


OPERATIONS: dict[str, Operation] = {
    "createInstance": Operation(_create_instance, ("form_id", "payload")),
    "supersededCreate": Operation(_superseded_create, ("old_instance_id", "new_payload")),
    "issue": Operation(_issue, ("instance_id",), ("recipient_member_id", "invitee_locator")),
    "resolve": Operation(_resolve, ("issuance_id", "resolution")),
    "revoke": Operation(_revoke, ("issuance_id",)),
    "getLineage": Operation(_get_lineage, ("instance_id",)),
    "getAuditTrail": Operation(_get_audit_trail, ("entity_type", "entity_id")),
    "getMyRecentAudit": Operation(_get_my_recent_audit, (), ("limit",)),
    "getIssuedCardInstance": Operation(_get_issued_card_instance, ("issuance_id",)),
    "registerForm": Operation(_register_form, ("name", "form_type", "schema_definition")),
}


def call(operation: str, arguments: dict[str, Any], *, caller, request=None):
    op = OPERATIONS.get(operation)
    if op is None:
        raise UnknownOperation(operation)

    missing = [name for name in op.required if arguments.get(name) is None]
    if missing:
        raise MissingArgument(missing)

    kwargs = {name: arguments[name] for name in op.required}
    kwargs.update({name: arguments[name] for name in op.optional if name in arguments})
    return op.handler(caller, request, **kwargs)
