from ninja.security import APIKeyHeader

from src.api_keys.services import api_key_validate


class ServiceKeyAuth(APIKeyHeader):
    """
    Authenticates system callers by X-API-Key. request.auth is the APIKey,
    never a member, so audit rows written on this path carry no actor.
    """

    param_name = "X-API-Key"

    def __init__(self, permission: str | None = None):
        super().__init__()
        self.permission = permission

    def authenticate(self, request, key):
        api_key = api_key_validate(plain_key=key)
        if api_key is None:
            return None
        if self.permission and not api_key.has_permission(self.permission):
            return None
        return api_key
