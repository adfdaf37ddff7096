from __future__ import annotations

from django.db.models import QuerySet

from src.cards.exceptions import FormNotFound
from src.cards.models import CardForm
from src.common.utils import parse_uuid


def form_list(*, form_type: str | None = None, status: str | None = None) -> QuerySet[CardForm]:
    qs = CardForm.objects.select_related("registered_by").order_by("-created_at")
    if form_type:
        qs = qs.filter(form_type=form_type)
    if status:
        qs = qs.filter(status=status)
    return qs


def form_get(form_id) -> CardForm:
    pk = parse_uuid(form_id)
    form = CardForm.objects.filter(pk=pk).first() if pk else None
    if form is None:
        raise FormNotFound()
    return form


def get_form_for_update(form_id) -> CardForm:
    """
    Loads a form by ID with a row-level lock for update
    """
    pk = parse_uuid(form_id)
    form = CardForm.objects.select_for_update().filter(pk=pk).first() if pk else None
    if form is None:
        raise FormNotFound()
    return form


def registered_form_names() -> set[str]:
    return set(
        CardForm.objects.filter(status=CardForm.Status.REGISTERED).values_list("name", flat=True)
    )
