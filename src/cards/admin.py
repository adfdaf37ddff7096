from django.contrib import admin

from src.cards.models import CardDelivery, CardForm, CardInstance, CardIssuance


@admin.register(CardForm)
class CardFormAdmin(admin.ModelAdmin):
    list_display = ("name", "form_type", "status", "registered_at", "registered_by")
    list_filter = ("form_type", "status")
    search_fields = ("name",)
    readonly_fields = ("registered_at", "registered_by", "created_at", "updated_at")
    ordering = ("-created_at",)

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None and obj.is_registered:
            fields += ["name", "form_type", "schema_definition", "status"]
        return fields


@admin.register(CardInstance)
class CardInstanceAdmin(admin.ModelAdmin):
    list_display = ("id", "form", "owner", "version", "is_current", "created_at")
    list_filter = ("is_current", "form__form_type")
    search_fields = ("id", "lineage_id", "owner__email")
    readonly_fields = (
        "form", "owner", "payload", "lineage_id", "version",
        "is_current", "superseded_by", "superseded_at", "created_at", "updated_at",
    )
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False


class CardDeliveryInline(admin.StackedInline):
    model = CardDelivery
    can_delete = False
    readonly_fields = ("recipient_member", "invitee_locator", "status", "created_at", "updated_at")
    extra = 0


@admin.register(CardIssuance)
class CardIssuanceAdmin(admin.ModelAdmin):
    list_display = ("id", "instance", "issuer", "recipient_member", "invitee_locator", "status", "issued_at")
    list_filter = ("status",)
    search_fields = ("id", "issuer__email", "recipient_member__email", "invitee_locator")
    readonly_fields = (
        "instance", "issuer", "recipient_member", "invitee_locator",
        "status", "issued_at", "resolved_at", "revoked_at",
    )
    inlines = [CardDeliveryInline]
    ordering = ("-issued_at",)

    def has_add_permission(self, request):
        return False
