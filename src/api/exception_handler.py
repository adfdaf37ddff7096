import logging
import traceback

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from ninja.errors import ValidationError as NinjaValidationError
from ninja_extra import NinjaExtraAPI

from src.core.apis import request_id_for
from src.core.exceptions import APIError

logger = logging.getLogger(__name__)

_SUPERSEDED = (409, "ALREADY_SUPERSEDED", "This CARD instance has already been superseded", None)
_ONE_RECIPIENT = (422, "INVALID_RECIPIENT", "Exactly one of recipient_member_id or invitee_locator is required", None)

# constraint name -> (status, code, message, field)
CONSTRAINT_ERRORS = {
    "user_email_unique": (409, "EMAIL_TAKEN", "Email already in use", "email"),
    "api_key_prefix_unique": (409, "API_KEY_PREFIX_TAKEN", "API key prefix already exists", "key_prefix"),
    "api_key_hash_unique": (409, "API_KEY_CONFLICT", "API key already exists", None),
    "card_instance_single_current": _SUPERSEDED,
    "card_instance_lineage_version_unique": _SUPERSEDED,
    "card_instance_superseded_not_current": _SUPERSEDED,
    "card_issuance_one_recipient": _ONE_RECIPIENT,
    "card_delivery_one_recipient": _ONE_RECIPIENT,
}


def constraint_name(exc: IntegrityError) -> str:
    """
    Name of the violated constraint. psycopg 3 exposes it through diag;
    other backends only mention it in the message.
    """
    cause = getattr(exc, "__cause__", None)
    diag = getattr(cause, "diag", None) if cause else None
    name = getattr(diag, "constraint_name", "") if diag else ""
    if name:
        return name
    message = str(exc)
    return next((known for known in CONSTRAINT_ERRORS if known in message), "")


def attach_exception_handlers(api: NinjaExtraAPI) -> None:
    def _envelope(request, *, message: str, status: int, code: str, data=None, errors=None, extra=None):
        return api.create_response(
            request,
            {
                "success": 200 <= status < 400,
                "message": message,
                "data": data or {},
                "extra": extra or {},
                "errors": errors,
                "code": code,
                "request_id": request_id_for(request),
            },
            status=status,
        )

    @api.exception_handler(APIError)
    def on_api_error(request, exc: APIError):
        return _envelope(
            request,
            message=exc.message,
            status=exc.status,
            code=exc.code,
            errors=exc.errors,
            extra=exc.extra,
        )

    @api.exception_handler(IntegrityError)
    def on_integrity_error(request, exc: IntegrityError):
        name = constraint_name(exc)
        status, code, msg, field = CONSTRAINT_ERRORS.get(name, (409, "CONFLICT", "Conflict", None))
        logger.info("integrity error", extra={"constraint": name or None, "code": code})

        errors = {field: ["already taken"]} if field else None
        return _envelope(request, message=msg, status=status, code=code, errors=errors)

    @api.exception_handler(DjangoValidationError)
    def on_django_validation_error(request, exc: DjangoValidationError):
        errors = exc.message_dict if hasattr(exc, "message_dict") else exc.messages
        return _envelope(
            request,
            message="Validation error",
            status=422,
            code="VALIDATION_ERROR",
            errors=errors,
        )

    @api.exception_handler(NinjaValidationError)
    def on_ninja_validation_error(request, exc: NinjaValidationError):
        return _envelope(
            request,
            message="Validation error",
            status=422,
            code="VALIDATION_ERROR",
            errors=exc.errors,
        )

    @api.exception_handler(Exception)
    def on_unexpected_error(request, exc: Exception):
        logger.exception("unhandled API error", extra={"path": request.path})
        extra = {"trace": traceback.format_exc(limit=20)} if settings.DEBUG else None
        return _envelope(
            request,
            message="Unexpected error",
            status=500,
            code="INTERNAL_ERROR",
            errors=str(exc) if settings.DEBUG else None,
            extra=extra,
        )
