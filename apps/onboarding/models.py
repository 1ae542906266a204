from django.db import models
from django.utils import timezone

from apps.common.models import BaseModel


class OnboardingSession(BaseModel):
    """Partial signup input, kept between steps until the account is created."""

    STEP_VERIFIED = "verified"
    STEP_PROFILE = "profile_submitted"
    STEP_ORGANIZATION = "organization_submitted"
    STEP_COMPLETE = "complete"
    STEP_CHOICES = [
        (STEP_VERIFIED, "Email verified"),
        (STEP_PROFILE, "Profile submitted"),
        (STEP_ORGANIZATION, "Organization submitted"),
        (STEP_COMPLETE, "Complete"),
    ]

    email = models.EmailField(db_index=True)
    step = models.CharField(max_length=30, choices=STEP_CHOICES, default=STEP_VERIFIED)
    expires_at = models.DateTimeField()

    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    password_hash = models.CharField(max_length=128, blank=True)
    remember = models.BooleanField(default=False)

    organization_name = models.CharField(max_length=200, blank=True)
    address_line1 = models.CharField(max_length=200, blank=True)
    address_line2 = models.CharField(max_length=200, blank=True)
    city = models.CharField(max_length=120, blank=True)
    state = models.CharField(max_length=120, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)

    def __str__(self):
        return f"{self.email} ({self.step})"

    def is_expired(self) -> bool:
        return timezone.now() >= self.expires_at
