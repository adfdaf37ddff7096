import secrets
import hashlib

from django.db import models
from src.common.models import BaseModel


class APIKey(BaseModel):
    """Service credentials for system-level calls (e.g. bootstrap form registration)."""

    created_by = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_api_keys",
    )
    name = models.CharField(max_length=255)
    key_prefix = models.CharField(max_length=12, unique=True, db_index=True)
    key_hash = models.CharField(max_length=255, unique=True)

    permissions = models.JSONField(default=list, help_text="['forms:register']")
    is_active = models.BooleanField(default=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    last_used_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "api_keys"
        verbose_name = "API Key"
        verbose_name_plural = "API Keys"
        constraints = [
            models.UniqueConstraint(fields=["key_prefix"], name="api_key_prefix_unique"),
            models.UniqueConstraint(fields=["key_hash"], name="api_key_hash_unique"),
        ]

    def __str__(self):
        return f"{self.name} ({self.key_prefix}...)"

    def has_permission(self, permission: str) -> bool:
        return permission in (self.permissions or [])

    @staticmethod
    def generate_key():
        return f"cardsvc_{secrets.token_urlsafe(32)}"

    @staticmethod
    def hash_key(plain_key: str) -> str:
        return hashlib.sha256(plain_key.encode()).hexdigest()
