from django.urls import path
from . import views


app_name = "verification"

urlpatterns = [
    path("verify", views.verify_link, name="verify"),
    path("verify/code", views.verify_code, name="verify_code"),
    path("code/resend", views.code_resend, name="code_resend"),
]
