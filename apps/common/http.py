from __future__ import annotations

from django.http import HttpRequest, HttpResponse, JsonResponse

from apps.common.errors import FlowError
from apps.common.rate_limit import LimitResult


def is_hx(request: HttpRequest) -> bool:
    return bool(getattr(request, "htmx", False)) or request.headers.get("HX-Request") == "true"


def hx_redirect(url: str) -> HttpResponse:
    resp = HttpResponse(status=204)
    resp["HX-Redirect"] = url
    return resp


def step_done(request: HttpRequest, url: str, **data) -> HttpResponse:
    """Answer a completed step: HX-Redirect for htmx, JSON otherwise."""
    if is_hx(request):
        return hx_redirect(url)
    return JsonResponse({"ok": True, "redirect": url, **data})


def error_response(exc: FlowError) -> JsonResponse:
    return JsonResponse(exc.as_dict(), status=exc.status)


def too_many_requests(rl: LimitResult | int) -> JsonResponse:
    retry_after = rl if isinstance(rl, int) else rl.retry_after
    resp = JsonResponse(
        {"error": "rate_limited", "message": "Too many requests. Try again in a few seconds.", "retry_after": retry_after},
        status=429,
    )
    resp["Retry-After"] = str(retry_after)
    return resp


def post_flag(request: HttpRequest, name: str) -> bool:
    return (request.POST.get(name) or "").lower() in {"1", "true", "on", "yes"}


AUTH_SESSION_KEY = "auth_session_id"
ONBOARDING_SESSION_KEY = "onboarding_session_id"
RESET_CHALLENGE_KEY = "reset_challenge_id"
