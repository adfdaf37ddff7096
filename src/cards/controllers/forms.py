from ninja import Query
from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from src.api.pagination import Paginator
from src.cards.presenters import form_to_dto, form_to_list_dto
from src.cards.registry import selectors, services
from src.cards.schemas import FormFilterParams, FormRegisterPayload
from src.core.apis import BaseAPIController


@api_controller("/forms", tags=["CARD Forms"], auth=JWTAuth())
class FormsController(BaseAPIController):

    @route.post("")
    def register_form(self, body: FormRegisterPayload):
        form = services.form_register(
            name=body.name,
            form_type=body.form_type,
            schema_definition=body.schema_definition,
            actor=self.caller,
            request=self.context.request,
        )
        return self.create_response(message="Form registered", data=form_to_dto(form), status_code=201)

    @route.post("/drafts")
    def create_draft(self, body: FormRegisterPayload):
        form = services.form_draft_create(
            name=body.name,
            form_type=body.form_type,
            schema_definition=body.schema_definition,
            actor=self.caller,
            request=self.context.request,
        )
        return self.create_response(message="Draft saved", data=form_to_dto(form), status_code=201)

    @route.post("/{form_id}/register")
    def promote_draft(self, form_id: str):
        form = services.form_promote(form_id=form_id, actor=self.caller, request=self.context.request)
        return self.create_response(message="Form registered", data=form_to_dto(form), status_code=200)

    @route.get("")
    def list_forms(self, filters: Query[FormFilterParams]):
        qs = selectors.form_list(form_type=filters.form_type, status=filters.status)
        paginator = Paginator(default_page_size=20, max_page_size=100)
        page_items, meta = paginator.paginate_queryset(qs, self.context.request)
        return self.create_response(
            message="CARD forms",
            data={"items": [form_to_list_dto(f) for f in page_items], "pagination": meta},
            status_code=200,
        )

    @route.get("/{form_id}")
    def get_form(self, form_id: str):
        form = selectors.form_get(form_id)
        return self.create_response(message="CARD form", data=form_to_dto(form), status_code=200)
