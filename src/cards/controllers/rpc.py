import json
import logging

from django.conf import settings
from django.http import JsonResponse
from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from src.cards import rpc
from src.core.exceptions import APIError

logger = logging.getLogger(__name__)


def _error(*, status: int, code: str, message: str, errors=None, extra=None):
    return JsonResponse(
        {"error_code": code, "error_message": message, "errors": errors, "extra": extra or {}},
        status=status,
    )


@api_controller("/rpc", tags=["RPC"], auth=JWTAuth())
class RPCController:

    @route.post("/{operation}")
    def call_operation(self, request, operation: str):
        try:
            arguments = json.loads(request.body or b"{}")
        except (ValueError, UnicodeDecodeError):
            return _error(status=400, code="INVALID_ARGUMENTS", message="Arguments must be a JSON object")
        if not isinstance(arguments, dict):
            return _error(status=400, code="INVALID_ARGUMENTS", message="Arguments must be a JSON object")

        try:
            data = rpc.call(operation, arguments, caller=request.auth, request=request)
        except APIError as exc:
            return _error(status=exc.status, code=exc.code, message=exc.message, errors=exc.errors, extra=exc.extra)
        except Exception as exc:
            logger.exception("RPC operation failed", extra={"operation": operation})
            return _error(
                status=500,
                code="INTERNAL_ERROR",
                message="Unexpected error",
                errors=str(exc) if settings.DEBUG else None,
            )

        return JsonResponse({"data": data}, status=200, safe=False)
