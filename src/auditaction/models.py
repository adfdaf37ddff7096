from django.db import models

from src.common.models import BaseModel


class AuditEntityType(models.TextChoices):
    CARD_FORM = "card_form", "CARD form"
    CARD_INSTANCE = "card_instance", "CARD instance"
    CARD_ISSUANCE = "card_issuance", "CARD issuance"
    API_KEY = "api_key", "API key"


class AuditAction(models.TextChoices):
    # Schema registry
    FORM_REGISTERED = "form_registered", "A new CARD form was registered"
    FORM_DRAFTED = "form_drafted", "A CARD form was saved as draft"

    # Instances
    INSTANCE_CREATED = "instance_created", "A CARD instance was created"
    INSTANCE_CREATE_BLOCKED_UNREGISTERED_FORM = (
        "instance_create_blocked_unregistered_form",
        "A CARD creation was blocked, form was not registered",
    )
    CARD_SUPERSEDED = "card_superseded", "A CARD was revised into a new version"

    # Issuance lifecycle
    CARD_ISSUED = "card_issued", "A CARD was issued to a recipient"
    CARD_ACCEPTED = "card_accepted", "The recipient accepted a CARD"
    CARD_REJECTED = "card_rejected", "The recipient declined a CARD"
    CARD_REVOKED = "card_revoked", "Access to a CARD was revoked"

    # External verification
    VERIFICATION_QUERIED = "verification_queried", "An agent's authorization was verified"

    # Service credentials
    API_KEY_CREATED = "api_key_created", "Service key created"
    API_KEY_REVOKED = "api_key_revoked", "Service key revoked"


class AppendOnlyError(Exception):
    pass


class AuditLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise AppendOnlyError("Audit entries are append-only")

    def delete(self):
        raise AppendOnlyError("Audit entries are append-only")


class AuditLog(BaseModel):
    """
    One lifecycle transition. Rows are written once and never changed;
    actor is NULL for system-initiated actions.
    """

    actor = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="audit_actions",
    )
    action = models.CharField(max_length=64, choices=AuditAction.choices, db_index=True)

    entity_type = models.CharField(max_length=32, choices=AuditEntityType.choices)
    entity_id = models.CharField(max_length=64, help_text="Id of the affected row")

    lifecycle_context = models.JSONField(default=dict, blank=True)

    # Request metadata
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    request_id = models.CharField(max_length=64, blank=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = "audit_log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id", "created_at"], name="audit_entity_idx"),
            models.Index(fields=["actor", "-created_at"], name="audit_actor_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AppendOnlyError("Audit entries are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AppendOnlyError("Audit entries are append-only")

    def __str__(self) -> str:
        actor = self.actor.email if self.actor else "system"
        return f"{self.action} by {actor} {self.entity_type}:{self.entity_id} at {self.created_at:%Y-%m-%d %H:%M:%S}"
