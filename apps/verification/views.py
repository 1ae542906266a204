from __future__ import annotations

import logging

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.urls import reverse
from django.views.decorators.http import require_http_methods, require_POST

from apps.accounts import services as accounts
from apps.common import errors
from apps.common.http import (
    AUTH_SESSION_KEY,
    ONBOARDING_SESSION_KEY,
    RESET_CHALLENGE_KEY,
    error_response,
    step_done,
    too_many_requests,
)
from apps.common.rate_limit import client_ip, cooldown, rate_limit
from apps.onboarding import services as onboarding
from . import services
from .models import Challenge

log = logging.getLogger(__name__)


def _route(request: HttpRequest, challenge: Challenge) -> HttpResponse:
    """Send the caller to the step the redeemed challenge authorizes."""
    if challenge.purpose == Challenge.PURPOSE_RESET:
        request.session[RESET_CHALLENGE_KEY] = str(challenge.id)
        return step_done(request, reverse("accounts:auth_reset"), type=challenge.purpose)
    if challenge.purpose == Challenge.PURPOSE_VERIFY_EMAIL and accounts.find_user(challenge.target):
        accounts.mark_email_verified(challenge)
        return step_done(request, reverse("accounts:auth_me"), type=challenge.purpose)
    session = onboarding.start(challenge)
    request.session[ONBOARDING_SESSION_KEY] = str(session.id)
    return step_done(request, reverse("onboarding:profile"), type=challenge.purpose)


@require_http_methods(["GET", "POST"])
def verify_link(request: HttpRequest) -> HttpResponse:
    """Link target. GET only echoes the link parameters; POST redeems it."""
    params = request.POST if request.method == "POST" else request.GET
    target = (params.get("target") or "").strip()
    token = (params.get("code") or "").strip()
    if request.method == "GET":
        return JsonResponse({"target": target, "code": token, "submit": reverse("verification:verify")})

    rl = rate_limit("verify", client_ip(request), limit=30, window_seconds=60)
    if not rl.allowed:
        return too_many_requests(rl)
    try:
        challenge = services.redeem_by_token(token, target=target or None)
    except errors.FlowError as e:
        log.info("Link redemption failed target=%s error=%s", target, e.code)
        return error_response(e)
    return _route(request, challenge)


@require_POST
def verify_code(request: HttpRequest) -> HttpResponse:
    target = (request.POST.get("target") or "").strip()
    purpose = (request.POST.get("type") or "").strip()
    code = request.POST.get("code") or ""

    rl = rate_limit("verify_code", client_ip(request), limit=30, window_seconds=60)
    if not rl.allowed:
        return too_many_requests(rl)
    try:
        challenge = services.redeem_by_code(purpose, target, code)
    except errors.FlowError as e:
        log.info("Code redemption failed target=%s type=%s error=%s", target, purpose, e.code)
        return error_response(e)
    return _route(request, challenge)


@require_POST
def code_resend(request: HttpRequest) -> HttpResponse:
    target = services.normalize_target(request.POST.get("target", ""))
    purpose = (request.POST.get("type") or "").strip()
    if purpose not in Challenge.valid_purposes() or not target:
        return error_response(errors.ValidationError("Nothing to resend.", {"type": "invalid"}))

    rl = rate_limit("resend", client_ip(request), limit=10, window_seconds=60)
    if not rl.allowed:
        return too_many_requests(rl)
    wait = cooldown(f"resend:{purpose}", target, settings.VERIFICATION_RESEND_COOLDOWN_SECONDS)
    if wait:
        return too_many_requests(wait)

    if purpose == Challenge.PURPOSE_RESET:
        result = accounts.request_password_reset(target)
        return JsonResponse({"ok": True, "message": result.message, "type": purpose})
    if purpose == Challenge.PURPOSE_ONBOARDING:
        try:
            signup = accounts.start_signup(target)
        except errors.FlowError as e:
            return error_response(e)
        delivered = signup.delivered
    else:
        try:
            user = accounts.authenticate_session(request.session.get(AUTH_SESSION_KEY))
        except errors.InvalidSession as e:
            return error_response(e)
        if user.email != target:
            return error_response(errors.ValidationError("Nothing to resend.", {"target": "invalid"}))
        delivered = accounts.request_email_verification(user).ok
    if not delivered:
        return JsonResponse({"error": "delivery_failed", "message": "We could not send the email."}, status=502)
    return JsonResponse({"ok": True, "message": "Check your email", "type": purpose})
