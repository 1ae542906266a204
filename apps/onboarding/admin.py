from django.contrib import admin

from .models import OnboardingSession


@admin.register(OnboardingSession)
class OnboardingSessionAdmin(admin.ModelAdmin):
    list_display = ("email", "step", "created_at", "expires_at")
    list_filter = ("step",)
    search_fields = ("email",)
    exclude = ("password_hash",)
