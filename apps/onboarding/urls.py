from django.urls import path
from . import views


app_name = "onboarding"

urlpatterns = [
    path("profile", views.profile_submit, name="profile"),
    path("organization", views.organization_submit, name="organization"),
]
