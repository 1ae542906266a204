from django.contrib import admin

from .models import Challenge


@admin.register(Challenge)
class ChallengeAdmin(admin.ModelAdmin):
    list_display = ("target", "purpose", "created_at", "expires_at", "consumed_at", "invalidated_at", "attempt_count")
    list_filter = ("purpose",)
    search_fields = ("target",)
    ordering = ("-created_at",)
    exclude = ("token_hash", "code_hash")
    readonly_fields = ("purpose", "target", "expires_at", "consumed_at", "invalidated_at", "attempt_count")

    def has_add_permission(self, request):
        return False
