from django.contrib import admin
from django.http import HttpResponse
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    # Healthcheck endpoint
    path("healthz", lambda _request: HttpResponse("ok")),
    path("auth/", include("apps.accounts.auth_urls")),
    path("auth/", include("apps.verification.urls")),
    path("auth/onboarding/", include("apps.onboarding.urls")),
]
