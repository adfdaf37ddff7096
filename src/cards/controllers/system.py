import json
import logging

from django.conf import settings
from django.http import JsonResponse
from ninja_extra import api_controller, route

from src.api_keys.auth import ServiceKeyAuth
from src.cards.registry.services import form_register
from src.core.exceptions import DomainValidationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "form_type", "schema_definition")


@api_controller(
    "/system",
    tags=["System"],
    auth=ServiceKeyAuth(permission=settings.CARDS_SYSTEM_REGISTER_PERMISSION),
)
class SystemFormsController:
    """
    Bootstrap registration for service callers. Registrations made here are
    audited with no actor; responses are bare JSON for provisioning scripts.
    """

    @route.post("/forms")
    def register_form(self, request):
        try:
            body = json.loads(request.body or b"{}")
        except (ValueError, UnicodeDecodeError):
            return JsonResponse({"error": "Request body must be JSON"}, status=400)
        if not isinstance(body, dict):
            return JsonResponse({"error": "Request body must be a JSON object"}, status=400)

        missing = [f for f in REQUIRED_FIELDS if body.get(f) in (None, "")]
        if missing:
            return JsonResponse({"error": f"Missing required fields: {', '.join(missing)}"}, status=400)

        try:
            form = form_register(
                name=body["name"],
                form_type=body["form_type"],
                schema_definition=body["schema_definition"],
                actor=None,
                request=request,
            )
        except DomainValidationError as exc:
            return JsonResponse({"error": exc.message, "code": exc.code, "errors": exc.errors}, status=400)
        except Exception as exc:
            logger.exception("System form registration failed", extra={"form_name": body.get("name")})
            return JsonResponse({"error": str(exc) or "Internal server error"}, status=500)

        logger.info(
            "form registered through system path",
            extra={"form_id": str(form.id), "api_key_prefix": request.auth.key_prefix},
        )
        return JsonResponse({"id": str(form.id)}, status=200)
