from ninja import Query
from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from src.api.pagination import Paginator
from src.cards.instances import selectors, services
from src.cards.presenters import instance_to_dto, lineage_entry_to_dto
from src.cards.schemas import InstanceCreatePayload, InstanceFilterParams, InstanceSupersedePayload
from src.core.apis import BaseAPIController


@api_controller("/instances", tags=["CARD Instances"], auth=JWTAuth())
class InstancesController(BaseAPIController):

    @route.post("")
    def create_instance(self, body: InstanceCreatePayload):
        instance = services.instance_create(
            form_id=body.form_id,
            payload=body.payload,
            owner=self.caller,
            request=self.context.request,
        )
        return self.create_response(message="CARD instance created", data=instance_to_dto(instance), status_code=201)

    @route.get("")
    def list_my_instances(self, filters: Query[InstanceFilterParams]):
        qs = selectors.instance_list_for_owner(
            owner=self.caller, current_only=filters.current_only, form_type=filters.form_type
        )
        paginator = Paginator(default_page_size=20, max_page_size=100)
        page_items, meta = paginator.paginate_queryset(qs, self.context.request)
        return self.create_response(
            message="My CARD instances",
            data={"items": [instance_to_dto(i) for i in page_items], "pagination": meta},
            status_code=200,
        )

    @route.get("/{instance_id}")
    def get_instance(self, instance_id: str):
        instance = selectors.instance_get(instance_id, viewer=self.caller)
        return self.create_response(message="CARD instance", data=instance_to_dto(instance), status_code=200)

    @route.post("/{instance_id}/supersede")
    def supersede_instance(self, instance_id: str, body: InstanceSupersedePayload):
        successor = services.instance_supersede(
            old_instance_id=instance_id,
            new_payload=body.payload,
            owner=self.caller,
            request=self.context.request,
        )
        return self.create_response(message="CARD revised", data=instance_to_dto(successor), status_code=201)

    @route.get("/{instance_id}/lineage")
    def get_lineage(self, instance_id: str):
        versions = selectors.instance_lineage(instance_id, viewer=self.caller)
        return self.create_response(
            message="CARD lineage",
            data={"items": [lineage_entry_to_dto(v) for v in versions]},
            status_code=200,
        )
