from __future__ import annotations
from typing import Any


class APIError(Exception):
    def __init__(self, *, message: str, code: str, status: int, errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.errors = errors
        self.extra = extra or {}


class DomainConflictError(APIError):
    def __init__(self, *, message: str, code: str, errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=409, errors=errors, extra=extra)


class DomainValidationError(APIError):
    def __init__(self, *, message: str, code: str = "VALIDATION_ERROR", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=422, errors=errors, extra=extra)


class DomainPermissionError(APIError):
    def __init__(self, *, message: str = "Permission denied", code: str = "FORBIDDEN", extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=403, extra=extra)


class DomainNotFoundError(APIError):
    def __init__(self, *, message: str, code: str = "NOT_FOUND", extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=404, extra=extra)
