def api_key_to_list_dto(key) -> dict:
    return {
        "id": key.id,
        "name": key.name,
        "key_prefix": key.key_prefix,
        "is_active": key.is_active,
        "permissions": key.permissions,
        "last_used_at": key.last_used_at.isoformat() if key.last_used_at else None,
        "expires_at": key.expires_at.isoformat() if key.expires_at else None,
        "created_at": key.created_at.isoformat(),
    }


def api_key_created_dto(key, plain_key: str) -> dict:
    return {
        **api_key_to_list_dto(key),
        "plain_key": plain_key,
    }
