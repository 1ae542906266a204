from django.http import HttpRequest, HttpResponse
from django.urls import reverse
from django.views.decorators.http import require_POST

from apps.accounts.auth_views import sign_in
from apps.common import errors
from apps.common.http import ONBOARDING_SESSION_KEY, error_response, post_flag, step_done
from . import services


def _fail(request: HttpRequest, exc: errors.FlowError) -> HttpResponse:
    if isinstance(exc, errors.InvalidSession):
        request.session.pop(ONBOARDING_SESSION_KEY, None)
    return error_response(exc)


@require_POST
def profile_submit(request: HttpRequest) -> HttpResponse:
    try:
        services.submit_profile(
            request.session.get(ONBOARDING_SESSION_KEY),
            first_name=request.POST.get("first_name", ""),
            last_name=request.POST.get("last_name", ""),
            password=request.POST.get("password", ""),
            confirm_password=request.POST.get("confirm_password", ""),
            remember=post_flag(request, "remember"),
        )
    except errors.FlowError as e:
        return _fail(request, e)
    return step_done(request, reverse("onboarding:organization"))


@require_POST
def organization_submit(request: HttpRequest) -> HttpResponse:
    try:
        result = services.submit_organization(
            request.session.get(ONBOARDING_SESSION_KEY),
            name=request.POST.get("name", ""),
            address_line1=request.POST.get("address_line1", ""),
            address_line2=request.POST.get("address_line2", ""),
            city=request.POST.get("city", ""),
            state=request.POST.get("state", ""),
            zip_code=request.POST.get("zip_code", ""),
        )
    except errors.FlowError as e:
        return _fail(request, e)
    request.session.pop(ONBOARDING_SESSION_KEY, None)
    sign_in(request, result.session)
    return step_done(request, reverse("accounts:auth_me"), organization=str(result.organization.id))
