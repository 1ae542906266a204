import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Housekeeping only; expiry is enforced at redemption time.
from celery.schedules import crontab
app.conf.beat_schedule = {
    "purge-expired-challenges": {
        "task": "apps.verification.tasks.purge_expired_challenges",
        "schedule": crontab(minute=15),
    },
    "purge-expired-sessions": {
        "task": "apps.accounts.tasks.purge_expired_sessions",
        "schedule": crontab(minute=30, hour=3),
    },
    "purge-stale-onboarding": {
        "task": "apps.onboarding.tasks.purge_stale_onboarding",
        "schedule": crontab(minute=45),
    },
}
