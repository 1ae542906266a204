from django.db import models
from django.utils import timezone

from apps.common.models import BaseModel


class Challenge(BaseModel):
    """One outstanding proof-of-email challenge.

    The link token and the short code are two lookup keys for the same row;
    only their SHA-256 digests are stored. Consumption is recorded on the row,
    so whichever key is redeemed first kills the other one.
    """

    PURPOSE_VERIFY_EMAIL = "verify_email"
    PURPOSE_ONBOARDING = "onboarding"
    PURPOSE_RESET = "reset_password"
    PURPOSE_CHOICES = [
        (PURPOSE_VERIFY_EMAIL, "Verify email"),
        (PURPOSE_ONBOARDING, "Onboarding"),
        (PURPOSE_RESET, "Reset password"),
    ]

    purpose = models.CharField(max_length=20, choices=PURPOSE_CHOICES)
    target = models.EmailField()
    token_hash = models.CharField(max_length=64, unique=True)
    code_hash = models.CharField(max_length=64)
    expires_at = models.DateTimeField()
    consumed_at = models.DateTimeField(null=True, blank=True)
    invalidated_at = models.DateTimeField(null=True, blank=True)
    attempt_count = models.PositiveSmallIntegerField(default=0)

    class Meta:
        indexes = [
            models.Index(fields=["purpose", "target", "created_at"], name="verif_purpose_target_idx"),
            models.Index(fields=["expires_at"], name="verif_expires_idx"),
        ]
        constraints = [
            # at most one open challenge per (purpose, target)
            models.UniqueConstraint(
                fields=["purpose", "target"],
                condition=models.Q(consumed_at__isnull=True, invalidated_at__isnull=True),
                name="verification_challenge_one_open_per_target",
            ),
        ]

    def __str__(self):
        return f"{self.purpose}:{self.target}"

    @classmethod
    def valid_purposes(cls) -> set[str]:
        return {p for p, _ in cls.PURPOSE_CHOICES}

    @classmethod
    def live(cls):
        return cls.objects.filter(
            consumed_at__isnull=True,
            invalidated_at__isnull=True,
            expires_at__gt=timezone.now(),
        )

    def is_expired(self) -> bool:
        return timezone.now() >= self.expires_at

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None
