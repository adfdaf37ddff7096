import pytest

from src.auditaction.models import AuditAction, AuditLog
from src.cards.exceptions import FormNotFound, InvalidFormType, InvalidSchema, InvalidStatus
from src.cards.models import CardForm
from src.cards.registry import selectors, services


@pytest.mark.django_db
def test_register_form_as_member_records_audit(alice):
    form = services.form_register(
        name="Health Data", form_type="data", schema_definition={"type": "object"}, actor=alice
    )

    assert form.status == CardForm.Status.REGISTERED
    assert form.registered_at is not None
    assert form.registered_by == alice

    entries = AuditLog.objects.filter(action=AuditAction.FORM_REGISTERED, entity_id=str(form.id))
    assert entries.count() == 1
    entry = entries.get()
    assert entry.actor == alice
    assert entry.lifecycle_context == {
        "form_name": "Health Data",
        "form_type": "data",
        "registration_mode": "member",
    }


@pytest.mark.django_db
def test_system_registration_has_no_actor():
    form = services.form_register(name="Entity", form_type="entity", schema_definition={"type": "object"})

    entry = AuditLog.objects.get(entity_id=str(form.id))
    assert entry.actor is None
    assert entry.lifecycle_context["registration_mode"] == "system"
    assert form.registered_by is None


@pytest.mark.django_db
@pytest.mark.parametrize("form_type", ["", "policy", None, "ENTITY"])
def test_register_rejects_unknown_form_type(form_type):
    with pytest.raises(InvalidFormType) as exc:
        services.form_register(name="X", form_type=form_type, schema_definition={"type": "object"})
    assert exc.value.status == 422
    assert CardForm.objects.count() == 0
    assert AuditLog.objects.count() == 0


@pytest.mark.django_db
@pytest.mark.parametrize("schema", [{"type": "not-a-type"}, ["type", "object"], "object", {"minLength": -1}])
def test_register_rejects_malformed_schema(schema):
    with pytest.raises(InvalidSchema) as exc:
        services.form_register(name="X", form_type="data", schema_definition=schema)
    assert exc.value.code == "INVALID_SCHEMA"
    assert "schema_definition" in exc.value.errors
    assert CardForm.objects.count() == 0


@pytest.mark.django_db
@pytest.mark.parametrize(
    "schema",
    [
        {"type": "object", "properties": {"x": {"$ref": "#/$defs/missing"}}},
        {"type": "array", "items": {"$ref": "https://schemas.example.org/remote.json"}},
    ],
)
def test_register_rejects_unresolvable_refs(schema):
    with pytest.raises(InvalidSchema) as exc:
        services.form_register(name="X", form_type="data", schema_definition=schema)
    assert "$ref" in exc.value.errors["schema_definition"][0]
    assert CardForm.objects.count() == 0


@pytest.mark.django_db
def test_register_accepts_local_refs():
    schema = {
        "type": "object",
        "properties": {"x": {"$ref": "#/$defs/positive"}},
        "$defs": {"positive": {"type": "integer", "minimum": 1}},
    }
    form = services.form_register(name="Refs", form_type="data", schema_definition=schema)
    assert form.is_registered


@pytest.mark.django_db
def test_registered_form_schema_is_immutable(data_form):
    data_form.schema_definition = {"type": "array"}
    with pytest.raises(ValueError):
        data_form.save()

    data_form.refresh_from_db()
    assert data_form.schema_definition["type"] == "object"


@pytest.mark.django_db
def test_draft_then_promote(alice):
    draft = services.form_draft_create(
        name="Draft use", form_type="use", schema_definition={"type": "object"}, actor=alice
    )
    assert draft.status == CardForm.Status.DRAFT
    assert draft.registered_at is None

    promoted = services.form_promote(form_id=draft.id, actor=alice)
    assert promoted.is_registered
    assert promoted.registered_by == alice

    actions = list(
        AuditLog.objects.filter(entity_id=str(draft.id)).order_by("created_at").values_list("action", flat=True)
    )
    assert actions == [AuditAction.FORM_DRAFTED, AuditAction.FORM_REGISTERED]

    with pytest.raises(InvalidStatus) as exc:
        services.form_promote(form_id=draft.id, actor=alice)
    assert exc.value.extra["current_status"] == "registered"


@pytest.mark.django_db
def test_form_get_unknown_and_malformed_ids():
    with pytest.raises(FormNotFound):
        selectors.form_get("00000000-0000-0000-0000-000000000000")
    with pytest.raises(FormNotFound):
        selectors.form_get("not-a-uuid")


@pytest.mark.django_db
def test_form_list_filters(data_form, use_form, alice):
    services.form_draft_create(name="Draft", form_type="data", schema_definition={}, actor=alice)

    assert {f.name for f in selectors.form_list(form_type="data")} == {"Health Data", "Draft"}
    assert [f.name for f in selectors.form_list(form_type="data", status="registered")] == ["Health Data"]
    assert selectors.form_list().count() == 3
