from datetime import timedelta

import pytest
from django.utils import timezone

from src.api_keys.models import APIKey
from src.api_keys.services import api_key_create, api_key_revoke, api_key_validate
from src.auditaction.models import AuditAction, AuditLog


@pytest.mark.django_db
def test_created_key_is_stored_hashed(alice):
    api_key, plain_key = api_key_create(created_by=alice, name="bootstrap", permissions=["forms:register"])

    assert plain_key.startswith("cardsvc_")
    assert api_key.key_hash == APIKey.hash_key(plain_key)
    assert plain_key not in (api_key.key_hash, api_key.key_prefix)
    assert api_key.has_permission("forms:register")
    assert AuditLog.objects.filter(action=AuditAction.API_KEY_CREATED, actor=alice).count() == 1


@pytest.mark.django_db
def test_validate_rejects_revoked_expired_and_unknown_keys():
    live, live_plain = api_key_create(created_by=None, name="live", permissions=[])
    _, expired_plain = api_key_create(
        created_by=None, name="old", permissions=[], expires_at=timezone.now() - timedelta(days=1)
    )

    assert api_key_validate(plain_key=live_plain) == live
    assert api_key_validate(plain_key=expired_plain) is None
    assert api_key_validate(plain_key="cardsvc_unknown") is None
    assert api_key_validate(plain_key="") is None

    api_key_revoke(key_prefix=live.key_prefix)
    assert api_key_validate(plain_key=live_plain) is None
    assert AuditLog.objects.filter(action=AuditAction.API_KEY_REVOKED).count() == 1
