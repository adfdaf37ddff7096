from __future__ import annotations

import uuid

from src.core.exceptions import DomainValidationError

URN_UUID_PREFIX = "urn:uuid:"


def validate_uuid(value, *, field: str = "id") -> uuid.UUID:
    """Parse a UUID coming from a path/query/body, or raise a 422."""
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise DomainValidationError(
            message=f"Invalid {field}",
            code="INVALID_ID",
            errors={field: ["must be a UUID"]},
        )


def parse_uuid(value) -> uuid.UUID | None:
    """Lenient variant of validate_uuid: accepts bare or urn:uuid: forms, None otherwise."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if raw.lower().startswith(URN_UUID_PREFIX):
        raw = raw[len(URN_UUID_PREFIX):]
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None


def as_urn(value) -> str:
    return f"{URN_UUID_PREFIX}{value}"
