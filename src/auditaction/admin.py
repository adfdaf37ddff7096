from django.contrib import admin
from src.auditaction.models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "action",
        "actor",
        "entity_type",
        "entity_id",
        "ip_address",
    )
    list_filter = ("action", "entity_type")
    search_fields = ("action", "actor__email", "entity_id")
    readonly_fields = (
        "created_at",
        "updated_at",
        "actor",
        "action",
        "entity_type",
        "entity_id",
        "lifecycle_context",
        "ip_address",
        "user_agent",
        "request_id",
    )
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
