import datetime as dt
import logging

from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from . import delivery
from .models import Challenge

log = logging.getLogger(__name__)


@shared_task
def send_challenge_mail(purpose: str, target: str, token: str, code: str):
    result = delivery.send_challenge(purpose, target, token, code)
    return {"ok": result.ok, "error": result.error}


def deliver_later(issued) -> None:
    """Queue the challenge mail once the issuing transaction commits."""

    def _dispatch():
        send_challenge_mail.delay(issued.purpose, issued.target, issued.token, issued.code)

    transaction.on_commit(_dispatch)


@shared_task
def purge_expired_challenges():
    """Delete challenges expired for longer than CHALLENGE_RETENTION_HOURS.

    Redemption already refuses expired rows; this only keeps the table small.
    """
    cutoff = timezone.now() - dt.timedelta(hours=settings.CHALLENGE_RETENTION_HOURS)
    deleted, _ = Challenge.objects.filter(expires_at__lt=cutoff).delete()
    log.info("Purged %s expired challenges (cutoff=%s)", deleted, cutoff.isoformat())
    return {"deleted": deleted}
