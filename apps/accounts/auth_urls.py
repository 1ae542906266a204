from django.urls import path
from . import auth_views as views


app_name = "accounts"

urlpatterns = [
    path("login", views.login_start, name="auth_login"),
    path("logout", views.logout, name="auth_logout"),
    path("me", views.me, name="auth_me"),
    path("signup", views.signup_start, name="auth_signup"),
    path("forgot-password", views.forgot_start, name="auth_forgot"),
    path("reset-password", views.reset_apply, name="auth_reset"),
    path("verify-email", views.verify_email_request, name="auth_verify_email"),
]
