from __future__ import annotations

import logging
from functools import wraps

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from apps.common import errors
from apps.common.http import (
    AUTH_SESSION_KEY,
    RESET_CHALLENGE_KEY,
    error_response,
    post_flag,
    step_done,
    too_many_requests,
)
from apps.common.rate_limit import client_ip, rate_limit
from apps.verification.models import Challenge
from . import services
from .models import UserSession

logger = logging.getLogger(__name__)


def sign_in(request: HttpRequest, user_session: UserSession) -> None:
    request.session.cycle_key()
    request.session[AUTH_SESSION_KEY] = str(user_session.id)
    request.session.set_expiry(max(1, int((user_session.expires_at - timezone.now()).total_seconds())))


def session_required(view):
    @wraps(view)
    def wrapper(request: HttpRequest, *args, **kwargs):
        try:
            request.auth_user = services.authenticate_session(request.session.get(AUTH_SESSION_KEY))
        except errors.InvalidSession as e:
            request.session.pop(AUTH_SESSION_KEY, None)
            return error_response(e)
        return view(request, *args, **kwargs)

    return wrapper


@require_POST
def login_start(request: HttpRequest) -> HttpResponse:
    rl = rate_limit("login", client_ip(request), limit=20, window_seconds=60)
    if not rl.allowed:
        return too_many_requests(rl)

    try:
        user_session = services.login(
            request.POST.get("email", ""),
            request.POST.get("password", ""),
            remember=post_flag(request, "remember"),
        )
    except errors.InvalidCredentials as e:
        return error_response(e)
    sign_in(request, user_session)
    return step_done(request, reverse("accounts:auth_me"))


@require_POST
def logout(request: HttpRequest) -> HttpResponse:
    services.logout(request.session.get(AUTH_SESSION_KEY))
    request.session.flush()
    return step_done(request, reverse("accounts:auth_login"))


@require_GET
@session_required
def me(request: HttpRequest) -> HttpResponse:
    user = request.auth_user
    return JsonResponse(
        {
            "id": str(user.id),
            "email": user.email,
            "full_name": user.full_name,
            "email_verified": user.email_verified_at is not None,
            "organizations": [{"id": str(o.id), "name": o.name} for o in user.organizations.order_by("created_at")],
        }
    )


@require_POST
def signup_start(request: HttpRequest) -> HttpResponse:
    rl = rate_limit("signup", client_ip(request), limit=10, window_seconds=60)
    if not rl.allowed:
        return too_many_requests(rl)
    try:
        result = services.start_signup(request.POST.get("email", ""))
    except errors.FlowError as e:
        return error_response(e)
    if not result.delivered:
        return JsonResponse(
            {"error": "delivery_failed", "message": "We could not send the email. Try resending the code."},
            status=502,
        )
    return JsonResponse({"ok": True, "message": "Check your email", "email": result.email, "type": Challenge.PURPOSE_ONBOARDING})


@require_POST
def forgot_start(request: HttpRequest) -> HttpResponse:
    rl = rate_limit("forgot", client_ip(request), limit=10, window_seconds=60)
    if not rl.allowed:
        return too_many_requests(rl)
    result = services.request_password_reset(request.POST.get("email", ""))
    return JsonResponse({"ok": True, "message": result.message, "email": result.email, "type": Challenge.PURPOSE_RESET})


@require_POST
def reset_apply(request: HttpRequest) -> HttpResponse:
    ch_id = request.session.get(RESET_CHALLENGE_KEY)
    challenge = Challenge.objects.filter(id=ch_id, purpose=Challenge.PURPOSE_RESET).first() if ch_id else None
    if challenge is None:
        logger.warning("Reset without verified challenge from ip=%s", client_ip(request))
        return error_response(errors.InvalidSession("Password reset session expired. Request a new one."))
    try:
        services.complete_reset(
            challenge,
            request.POST.get("password", ""),
            request.POST.get("confirm_password", ""),
        )
    except errors.ValidationError as e:
        return error_response(e)
    except (errors.NotFound, errors.AlreadyUsed) as e:
        request.session.pop(RESET_CHALLENGE_KEY, None)
        return error_response(e)
    request.session.pop(RESET_CHALLENGE_KEY, None)
    request.session.pop(AUTH_SESSION_KEY, None)
    return step_done(request, reverse("accounts:auth_login"))


@require_POST
@session_required
def verify_email_request(request: HttpRequest) -> HttpResponse:
    user = request.auth_user
    if user.email_verified_at is not None:
        return JsonResponse({"ok": True, "message": "Email already verified"})
    result = services.request_email_verification(user)
    if not result.ok:
        return JsonResponse({"error": "delivery_failed", "message": "We could not send the email."}, status=502)
    return JsonResponse({"ok": True, "message": "Check your email", "type": Challenge.PURPOSE_VERIFY_EMAIL})
