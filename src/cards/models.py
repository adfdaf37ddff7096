import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone

from src.common.models import BaseModel


class CardFormType(models.TextChoices):
    ENTITY = "entity", "Entity"
    DATA = "data", "Data"
    USE = "use", "Use"


class CardForm(BaseModel):
    """
    A registered CARD schema. Once registered only its status may change.
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        REGISTERED = "registered", "Registered"

    name = models.CharField(max_length=255)
    form_type = models.CharField(max_length=16, choices=CardFormType.choices, db_index=True)
    schema_definition = models.JSONField(help_text="JSON Schema the payloads must satisfy")
    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.DRAFT, db_index=True
    )
    registered_at = models.DateTimeField(null=True, blank=True)
    registered_by = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registered_card_forms",
        help_text="NULL for system registrations",
    )

    class Meta:
        db_table = "card_forms"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} ({self.form_type}, {self.status})"

    @property
    def is_registered(self) -> bool:
        return self.status == self.Status.REGISTERED

    def save(self, *args, **kwargs):
        if not self._state.adding:
            previous = (
                CardForm.objects.filter(pk=self.pk)
                .values("status", "name", "form_type", "schema_definition")
                .first()
            )
            if previous and previous["status"] == self.Status.REGISTERED:
                frozen = ("name", "form_type", "schema_definition")
                if any(previous[f] != getattr(self, f) for f in frozen):
                    raise ValueError("Registered CARD forms are immutable")
        super().save(*args, **kwargs)


class CardInstance(BaseModel):
    """
    One version of a CARD. Versions of the same document share lineage_id
    (the id of the first version); exactly one of them is current, and it is
    always the one nobody supersedes.
    """

    form = models.ForeignKey(CardForm, on_delete=models.PROTECT, related_name="instances")
    owner = models.ForeignKey(
        "users.User", on_delete=models.PROTECT, related_name="card_instances"
    )
    payload = models.JSONField()

    lineage_id = models.UUIDField(db_index=True, help_text="Id of the first version")
    version = models.PositiveIntegerField(default=1, help_text="1-based position in the lineage")
    is_current = models.BooleanField(default=True)

    superseded_by = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="supersedes",
    )
    superseded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "card_instances"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["lineage_id"],
                condition=Q(is_current=True),
                name="card_instance_single_current",
            ),
            models.UniqueConstraint(
                fields=["lineage_id", "version"],
                name="card_instance_lineage_version_unique",
            ),
            models.CheckConstraint(
                condition=Q(superseded_by__isnull=True) | Q(is_current=False),
                name="card_instance_superseded_not_current",
            ),
        ]

    def __str__(self):
        return f"{self.lineage_id}@v{self.version}{' (current)' if self.is_current else ''}"

    def save(self, *args, **kwargs):
        if self._state.adding and self.lineage_id is None:
            self.lineage_id = self.id
        if not self._state.adding:
            previous = (
                CardInstance.objects.filter(pk=self.pk)
                .values("superseded_by_id", "is_current")
                .first()
            )
            if previous and previous["superseded_by_id"] is not None:
                if previous["superseded_by_id"] != self.superseded_by_id or self.is_current:
                    raise ValueError("Supersession is permanent")
        super().save(*args, **kwargs)


class IssuanceStatus(models.TextChoices):
    ISSUED = "issued", "Issued"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"
    REVOKED = "revoked", "Revoked"


# from-status -> statuses it may move to
ISSUANCE_TRANSITIONS = {
    IssuanceStatus.ISSUED.value: {
        IssuanceStatus.ACCEPTED.value,
        IssuanceStatus.REJECTED.value,
        IssuanceStatus.REVOKED.value,
    },
    IssuanceStatus.ACCEPTED.value: {IssuanceStatus.REVOKED.value},
    IssuanceStatus.REJECTED.value: set(),
    IssuanceStatus.REVOKED.value: set(),
}


def statuses_allowing(target: str) -> list[str]:
    """Statuses from which an issuance may move to target."""
    return sorted(src for src, targets in ISSUANCE_TRANSITIONS.items() if str(target) in targets)


def _exactly_one_recipient() -> Q:
    return Q(recipient_member__isnull=False, invitee_locator__isnull=True) | Q(
        recipient_member__isnull=True, invitee_locator__isnull=False
    )


class CardIssuance(models.Model):
    """An offer of one instance to one recipient (member or external invitee)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    instance = models.ForeignKey(CardInstance, on_delete=models.PROTECT, related_name="issuances")
    issuer = models.ForeignKey(
        "users.User", on_delete=models.PROTECT, related_name="issued_cards"
    )
    recipient_member = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="received_cards",
    )
    invitee_locator = models.CharField(max_length=320, null=True, blank=True)
    status = models.CharField(
        max_length=16, choices=IssuanceStatus.choices, default=IssuanceStatus.ISSUED, db_index=True
    )
    issued_at = models.DateTimeField(default=timezone.now, db_index=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "card_issuances"
        ordering = ["-issued_at"]
        constraints = [
            models.CheckConstraint(
                condition=_exactly_one_recipient(),
                name="card_issuance_one_recipient",
            ),
        ]

    def __str__(self):
        return f"{self.instance_id} -> {self.recipient_label} ({self.status})"

    @property
    def recipient_label(self) -> str:
        return str(self.recipient_member_id) if self.recipient_member_id else (self.invitee_locator or "")

    def can_transition_to(self, status: str) -> bool:
        return str(status) in ISSUANCE_TRANSITIONS.get(str(self.status), set())


class CardDelivery(BaseModel):
    """Recipient-facing mirror of an issuance; status follows the issuance."""

    issuance = models.OneToOneField(CardIssuance, on_delete=models.CASCADE, related_name="delivery")
    recipient_member = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="card_deliveries",
    )
    invitee_locator = models.CharField(max_length=320, null=True, blank=True)
    status = models.CharField(
        max_length=16, choices=IssuanceStatus.choices, default=IssuanceStatus.ISSUED, db_index=True
    )

    class Meta:
        db_table = "card_deliveries"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=_exactly_one_recipient(),
                name="card_delivery_one_recipient",
            ),
        ]

    def __str__(self):
        return f"delivery {self.issuance_id} ({self.status})"
