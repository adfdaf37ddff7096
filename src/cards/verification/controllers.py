import logging

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from ninja_extra import api_controller, route

from src.cards.verification.services import verify

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


def _with_cors(response):
    for header, value in settings.CARDS_VERIFY_CORS_HEADERS.items():
        response[header] = value
    return response


def _json(body: dict, status: int = 200):
    return _with_cors(JsonResponse(body, status=status, json_dumps_params={"indent": 2}))


@api_controller("/verify-card", tags=["Verification"], auth=None)
class VerifyCardController:
    """
    Public agent verification. Answers with a bare JSON document (not the
    API envelope) so external policy engines can consume it directly.
    """

    @route.generic("", methods=ALL_METHODS)
    def verify_card(self, request):
        if request.method == "OPTIONS":
            return _with_cors(HttpResponse("ok", content_type="text/plain"))
        if request.method != "GET":
            return _json({"error": "Method not allowed. Use GET."}, status=405)

        agent_id = (request.GET.get("agent_id") or "").strip()
        card_ref = (request.GET.get("card_ref") or "").strip() or None
        if not agent_id:
            return _json({"error": "Missing required parameter: agent_id"}, status=400)

        try:
            result = verify(agent_id=agent_id, card_ref=card_ref, request=request)
        except Exception as exc:
            logger.exception("verify-card failed", extra={"agent_id": agent_id})
            return _json({"error": "Internal server error", "detail": str(exc) or "Unknown error"}, status=500)

        return _json(result.to_dict())
