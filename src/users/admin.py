from django.contrib import admin

from src.users.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    ordering = ("email",)
    list_display = ("email", "display_name", "is_active", "is_staff", "created_at")
    search_fields = ("email", "display_name")
    list_filter = ("is_active", "is_staff")
    exclude = ("password",)
    readonly_fields = ("last_login", "created_at", "updated_at")
