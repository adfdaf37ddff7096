from __future__ import annotations

from django.db.models import QuerySet

from src.cards.exceptions import InstanceNotFound
from src.cards.models import CardInstance
from src.cards.policies import can_view_instance
from src.common.utils import parse_uuid


def instance_list_for_owner(*, owner, current_only: bool = False, form_type: str | None = None) -> QuerySet[CardInstance]:
    qs = CardInstance.objects.select_related("form").filter(owner=owner).order_by("-created_at")
    if current_only:
        qs = qs.filter(is_current=True)
    if form_type:
        qs = qs.filter(form__form_type=form_type)
    return qs


def instance_get(instance_id, *, viewer=None) -> CardInstance:
    """
    Fetch one instance. With a viewer, instances they may not see are
    reported as missing.
    """
    pk = parse_uuid(instance_id)
    instance = (
        CardInstance.objects.select_related("form", "owner").filter(pk=pk).first() if pk else None
    )
    if instance is None or (viewer is not None and not can_view_instance(viewer, instance)):
        raise InstanceNotFound()
    return instance


def get_instance_for_update(instance_id) -> CardInstance:
    """
    Loads an instance by ID with a row-level lock for update
    """
    return CardInstance.objects.select_for_update().get(pk=instance_id)


def instance_lineage(instance_id, *, viewer=None) -> list[CardInstance]:
    """Every version sharing the instance's lineage, oldest first."""
    instance = instance_get(instance_id, viewer=viewer)
    return list(
        CardInstance.objects.select_related("form")
        .filter(lineage_id=instance.lineage_id)
        .order_by("version")
    )
