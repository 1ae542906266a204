from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from django.conf import settings
from django.template import Context, Template as DjTemplate

from apps.common.mail import MailDeliveryError, MailMessage, MailProvider, get_mail_provider
from .models import Challenge

log = logging.getLogger(__name__)


TEMPLATES = {
    Challenge.PURPOSE_ONBOARDING: {
        "subject": "Welcome! Confirm your email",
        "body_txt": (
            "Welcome!\n\n"
            "Here's your verification code: {{ code }}\n\n"
            "Or click the link to get started:\n{{ url }}\n\n"
            "This code expires in {{ ttl_min }} minutes."
        ),
    },
    Challenge.PURPOSE_RESET: {
        "subject": "Password reset",
        "body_txt": (
            "Here's your verification code: {{ code }}\n\n"
            "Or click the link to reset your password:\n{{ url }}\n\n"
            "This code expires in {{ ttl_min }} minutes. "
            "If you did not ask for a password reset you can ignore this email."
        ),
    },
    Challenge.PURPOSE_VERIFY_EMAIL: {
        "subject": "Verify your email",
        "body_txt": (
            "Here's your verification code: {{ code }}\n\n"
            "Or click the link to verify your email:\n{{ url }}\n\n"
            "This code expires in {{ ttl_min }} minutes."
        ),
    },
}


@dataclass
class DeliveryResult:
    ok: bool
    error: str = ""


def build_verify_url(target: str, token: str) -> str:
    base = settings.APP_BASE_URL.rstrip("/")
    return f"{base}/auth/verify?{urlencode({'target': target, 'code': token})}"


def render_message(purpose: str, target: str, token: str, code: str) -> MailMessage:
    tpl = TEMPLATES[purpose]
    ctx = Context(
        {"code": code, "url": build_verify_url(target, token), "ttl_min": settings.VERIFICATION_TTL_MINUTES},
        autoescape=False,
    )
    return MailMessage(
        to=target,
        subject=DjTemplate(tpl["subject"]).render(ctx),
        body=DjTemplate(tpl["body_txt"]).render(ctx),
        from_email=settings.MAIL_FROM,
    )


def send_challenge(purpose: str, target: str, token: str, code: str, provider: MailProvider | None = None) -> DeliveryResult:
    """Compose and send the link + code message.

    Failures are reported, never raised: the challenge stays issued and a
    resend supersedes it.
    """
    msg = render_message(purpose, target, token, code)
    provider = provider or get_mail_provider()
    try:
        provider.send(msg)
    except MailDeliveryError as e:
        log.error("Verification mail failed purpose=%s target=%s: %s", purpose, target, e)
        return DeliveryResult(ok=False, error=str(e))
    log.info("Verification mail sent purpose=%s target=%s", purpose, target)
    return DeliveryResult(ok=True)


def deliver(issued) -> DeliveryResult:
    return send_challenge(issued.purpose, issued.target, issued.token, issued.code)
