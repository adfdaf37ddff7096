from ninja import Query
from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from src.api.pagination import Paginator
from src.cards.issuance import selectors, services
from src.cards.presenters import delivery_to_dto, instance_to_dto, issuance_to_dto
from src.cards.schemas import IssuedFilterParams, IssuePayload, ReceivedFilterParams, ResolvePayload
from src.core.apis import BaseAPIController


@api_controller("/issuances", tags=["CARD Issuances"], auth=JWTAuth())
class IssuancesController(BaseAPIController):

    @route.post("")
    def issue_card(self, body: IssuePayload):
        issuance = services.issue(
            instance_id=body.instance_id,
            recipient_member_id=body.recipient_member_id,
            invitee_locator=body.invitee_locator,
            issuer=self.caller,
            request=self.context.request,
        )
        data = issuance_to_dto(issuance)
        data["delivery_id"] = issuance.delivery.id
        return self.create_response(message="CARD issued", data=data, status_code=201)

    @route.get("/issued")
    def list_issued(self, filters: Query[IssuedFilterParams]):
        qs = selectors.issuance_list_issued_by(issuer=self.caller, status=filters.status)
        paginator = Paginator(default_page_size=20, max_page_size=100)
        page_items, meta = paginator.paginate_queryset(qs, self.context.request)
        return self.create_response(
            message="Issued CARDs",
            data={"items": [issuance_to_dto(i) for i in page_items], "pagination": meta},
            status_code=200,
        )

    @route.get("/received")
    def list_received(self, filters: Query[ReceivedFilterParams]):
        qs = selectors.delivery_list_for_recipient(member=self.caller, pending_only=filters.pending_only)
        paginator = Paginator(default_page_size=20, max_page_size=100)
        page_items, meta = paginator.paginate_queryset(qs, self.context.request)
        return self.create_response(
            message="Received CARDs",
            data={"items": [delivery_to_dto(d) for d in page_items], "pagination": meta},
            status_code=200,
        )

    @route.post("/{issuance_id}/resolve")
    def resolve_issuance(self, issuance_id: str, body: ResolvePayload):
        issuance = services.resolve(
            issuance_id=issuance_id,
            resolution=body.resolution,
            recipient=self.caller,
            request=self.context.request,
        )
        return self.create_response(message=f"CARD {issuance.status}", data=issuance_to_dto(issuance), status_code=200)

    @route.post("/{issuance_id}/revoke")
    def revoke_issuance(self, issuance_id: str):
        issuance = services.revoke(issuance_id=issuance_id, issuer=self.caller, request=self.context.request)
        return self.create_response(message="CARD revoked", data=issuance_to_dto(issuance), status_code=200)

    @route.get("/{issuance_id}/instance")
    def get_issued_instance(self, issuance_id: str):
        instance = services.issued_instance_get(issuance_id=issuance_id, caller=self.caller)
        return self.create_response(message="Issued CARD instance", data=instance_to_dto(instance), status_code=200)
