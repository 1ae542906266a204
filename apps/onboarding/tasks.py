import logging

from celery import shared_task
from django.utils import timezone

from .models import OnboardingSession

log = logging.getLogger(__name__)


@shared_task
def purge_stale_onboarding():
    deleted, _ = OnboardingSession.objects.filter(expires_at__lt=timezone.now()).delete()
    log.info("Purged %s stale onboarding sessions", deleted)
    return {"deleted": deleted}
