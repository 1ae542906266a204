from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import Organization, UserSession


User = get_user_model()


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = (
        "email",
        "first_name",
        "last_name",
        "is_staff",
        "email_verified_at",
    )
    search_fields = ("email", "first_name", "last_name")
    ordering = ("email",)
    readonly_fields = ("email_verified_at",)

    fieldsets = DjangoUserAdmin.fieldsets + (
        (_("Verification"), {"fields": ("email_verified_at",)}),
    )


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "city", "state", "created_at")
    search_fields = ("name", "owner__email")


@admin.register(UserSession)
class UserSessionAdmin(admin.ModelAdmin):
    list_display = ("user", "created_at", "expires_at", "revoked_at", "remember")
    list_filter = ("remember",)
    search_fields = ("user__email",)
    readonly_fields = ("user", "expires_at", "remember")
