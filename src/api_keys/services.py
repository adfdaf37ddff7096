from django.db import transaction
from django.utils import timezone

from src.api_keys.models import APIKey
from src.auditaction.models import AuditAction, AuditEntityType
from src.auditaction.services import audit_action_create


@transaction.atomic
def api_key_create(*, created_by, name: str, permissions: list, expires_at=None) -> tuple:
    """
    Create a service key.

    Returns (api_key, plain_key). The plain key is only ever returned here.
    """

    plain_key = APIKey.generate_key()
    api_key = APIKey.objects.create(created_by=created_by,
                                    name=name,
                                    key_prefix=plain_key[:12],
                                    key_hash=APIKey.hash_key(plain_key),
                                    permissions=list(permissions or []),
                                    expires_at=expires_at,
                                    is_active=True)

    audit_action_create(actor=created_by,
                        action=AuditAction.API_KEY_CREATED,
                        entity_type=AuditEntityType.API_KEY,
                        entity_id=api_key.id,
                        context={'name': name, 'permissions': api_key.permissions})

    return api_key, plain_key


@transaction.atomic
def api_key_revoke(*, key_prefix: str, revoked_by=None) -> APIKey:
    api_key = APIKey.objects.select_for_update().get(key_prefix=key_prefix)
    api_key.is_active = False
    api_key.save(update_fields=["is_active", "updated_at"])

    audit_action_create(actor=revoked_by,
                        action=AuditAction.API_KEY_REVOKED,
                        entity_type=AuditEntityType.API_KEY,
                        entity_id=api_key.id,
                        context={'name': api_key.name})

    return api_key


def api_key_validate(*, plain_key: str):
    """Return the active, unexpired APIKey matching plain_key, or None."""

    if not plain_key:
        return None

    try:
        api_key = APIKey.objects.get(key_hash=APIKey.hash_key(plain_key), is_active=True)
    except APIKey.DoesNotExist:
        return None

    if api_key.expires_at and api_key.expires_at < timezone.now():
        return None

    APIKey.objects.filter(pk=api_key.pk).update(last_used_at=timezone.now())
    return api_key
