import logging

from celery import shared_task
from django.db.models import Q
from django.utils import timezone

from .models import UserSession

log = logging.getLogger(__name__)


@shared_task
def purge_expired_sessions():
    deleted, _ = UserSession.objects.filter(Q(expires_at__lt=timezone.now()) | Q(revoked_at__isnull=False)).delete()
    log.info("Purged %s expired or revoked sessions", deleted)
    return {"deleted": deleted}
