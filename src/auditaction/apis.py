from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from src.auditaction import selectors
from src.auditaction.presenters import audit_entry_to_dto
from src.core.apis import BaseAPIController


@api_controller("/audit", tags=["Audit"], auth=JWTAuth())
class AuditActionController(BaseAPIController):
    @route.get("/trail")
    def get_trail(self, entity_type: str, entity_id: str):
        """
        Lifecycle history of one form, instance or issuance, oldest first.
        Only members related to the entity may read it.
        """
        entries = selectors.audit_trail_for_viewer(
            viewer=self.caller, entity_type=entity_type, entity_id=entity_id
        )
        return self.create_response(
            message="Audit trail",
            data={"items": [audit_entry_to_dto(e) for e in entries]},
            status_code=200,
        )

    @route.get("/mine")
    def get_my_recent(self, limit: int | None = None):
        entries = selectors.audit_recent_for_actor(actor=self.caller, limit=limit)
        return self.create_response(
            message="My recent activity",
            data={"items": [audit_entry_to_dto(e) for e in entries]},
            status_code=200,
        )
