"""
CARD domain errors.

Validation errors are caller-correctable and carry field-level detail.
Authorization errors stay generic so they never reveal whether an entity the
caller cannot see exists. State conflicts report the current state.
"""
from __future__ import annotations

from typing import Any

from src.core.exceptions import (
    APIError,
    DomainConflictError,
    DomainNotFoundError,
    DomainPermissionError,
    DomainValidationError,
)


class CardError(APIError):
    """Marker base, used by the RPC surface to tell domain failures from crashes."""


class InvalidFormType(DomainValidationError, CardError):
    def __init__(self, form_type):
        super().__init__(
            message="form_type must be entity, data, or use",
            code="INVALID_FORM_TYPE",
            errors={"form_type": [f"unsupported value: {form_type!r}"]},
        )


class InvalidSchema(DomainValidationError, CardError):
    def __init__(self, detail: str):
        super().__init__(
            message="schema_definition is not a valid JSON Schema",
            code="INVALID_SCHEMA",
            errors={"schema_definition": [detail]},
        )


class PayloadInvalid(DomainValidationError, CardError):
    def __init__(self, errors: dict[str, list[str]]):
        super().__init__(
            message="Payload does not match the form schema",
            code="PAYLOAD_INVALID",
            errors=errors,
        )


class InvalidRecipient(DomainValidationError, CardError):
    def __init__(self, message: str = "Exactly one of recipient_member_id or invitee_locator is required"):
        super().__init__(message=message, code="INVALID_RECIPIENT")


class InvalidResolution(DomainValidationError, CardError):
    def __init__(self, resolution):
        super().__init__(
            message="resolution must be accepted or rejected",
            code="INVALID_RESOLUTION",
            errors={"resolution": [f"unsupported value: {resolution!r}"]},
        )


class NotOwner(DomainPermissionError, CardError):
    def __init__(self):
        super().__init__(message="You do not own this CARD instance", code="NOT_OWNER")


class NotIssuer(DomainPermissionError, CardError):
    def __init__(self):
        super().__init__(message="Only the issuer can revoke this issuance", code="NOT_ISSUER")


class NotRecipient(DomainPermissionError, CardError):
    def __init__(self):
        super().__init__(message="This issuance is not addressed to you", code="NOT_RECIPIENT")


class AlreadySuperseded(DomainConflictError, CardError):
    def __init__(self, superseded_by=None):
        super().__init__(
            message="This CARD instance has already been superseded",
            code="ALREADY_SUPERSEDED",
            extra={"current_state": "superseded", "superseded_by": str(superseded_by) if superseded_by else None},
        )


class InvalidStatus(DomainConflictError, CardError):
    def __init__(self, current_status, attempted: str):
        super().__init__(
            message=f"Cannot {attempted} an issuance in status {current_status}",
            code="INVALID_STATUS",
            extra={"current_status": str(current_status), "attempted": attempted},
        )


class FormNotRegistered(DomainConflictError, CardError):
    def __init__(self, form_id, current_status):
        super().__init__(
            message="CARD form is not registered",
            code="FORM_NOT_REGISTERED",
            extra={"form_id": str(form_id), "current_status": str(current_status)},
        )


class FormNotFound(DomainNotFoundError, CardError):
    def __init__(self):
        super().__init__(message="CARD form not found", code="FORM_NOT_FOUND")


class InstanceNotFound(DomainNotFoundError, CardError):
    def __init__(self):
        super().__init__(message="CARD instance not found", code="INSTANCE_NOT_FOUND")
