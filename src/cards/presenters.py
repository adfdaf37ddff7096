from src.common.utils import as_urn


def _iso(value):
    return value.isoformat() if value else None


def form_to_dto(form) -> dict:
    return {
        "id": form.id,
        "name": form.name,
        "form_type": form.form_type,
        "status": form.status,
        "schema_definition": form.schema_definition,
        "registered_at": _iso(form.registered_at),
        "registered_by": form.registered_by_id,
        "created_at": form.created_at.isoformat(),
    }


def form_to_list_dto(form) -> dict:
    return {
        "id": form.id,
        "name": form.name,
        "form_type": form.form_type,
        "status": form.status,
        "registered_at": _iso(form.registered_at),
    }


def instance_to_dto(instance) -> dict:
    return {
        "id": instance.id,
        "card_ref": as_urn(instance.id),
        "form_id": instance.form_id,
        "owner_id": instance.owner_id,
        "payload": instance.payload,
        "lineage_id": instance.lineage_id,
        "version_number": instance.version,
        "is_current": instance.is_current,
        "superseded_by": instance.superseded_by_id,
        "superseded_at": _iso(instance.superseded_at),
        "created_at": instance.created_at.isoformat(),
    }


def lineage_entry_to_dto(instance) -> dict:
    return {
        "id": instance.id,
        "form_id": instance.form_id,
        "payload": instance.payload,
        "version_number": instance.version,
        "is_current": instance.is_current,
        "superseded_by": instance.superseded_by_id,
        "superseded_at": _iso(instance.superseded_at),
        "created_at": instance.created_at.isoformat(),
    }


def issuance_to_dto(issuance) -> dict:
    return {
        "id": issuance.id,
        "instance_id": issuance.instance_id,
        "issuer_id": issuance.issuer_id,
        "recipient_member_id": issuance.recipient_member_id,
        "invitee_locator": issuance.invitee_locator,
        "status": issuance.status,
        "issued_at": _iso(issuance.issued_at),
        "resolved_at": _iso(issuance.resolved_at),
        "revoked_at": _iso(issuance.revoked_at),
    }


def delivery_to_dto(delivery) -> dict:
    issuance = delivery.issuance
    return {
        "id": delivery.id,
        "issuance_id": delivery.issuance_id,
        "instance_id": issuance.instance_id,
        "issuer_id": issuance.issuer_id,
        "form_type": issuance.instance.form.form_type,
        "status": delivery.status,
        "issued_at": _iso(issuance.issued_at),
        "updated_at": _iso(delivery.updated_at),
    }
