from django.core.management.base import BaseCommand

from apps.accounts.tasks import purge_expired_sessions
from apps.onboarding.tasks import purge_stale_onboarding
from apps.verification.tasks import purge_expired_challenges


class Command(BaseCommand):
    help = "Deletes expired challenges, stale onboarding sessions and dead login sessions."

    def handle(self, *args, **options):
        res = {
            "challenges": purge_expired_challenges()["deleted"],
            "onboarding": purge_stale_onboarding()["deleted"],
            "sessions": purge_expired_sessions()["deleted"],
        }
        self.stdout.write(self.style.SUCCESS(f"OK: {res}"))
