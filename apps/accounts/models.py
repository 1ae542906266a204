from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import UniqueConstraint
from django.db.models.functions import Lower
from django.utils import timezone

from apps.common.models import BaseModel


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class User(BaseModel, AbstractUser):
    """Custom User with UUID primary key and timestamps.

    Email is the login identifier; it is stored lower-cased and unique
    case-insensitively. ``email_verified_at`` is set when the address was
    proven through a challenge.
    """

    email = models.EmailField("email address", blank=True)
    email_verified_at = models.DateTimeField(null=True, blank=True)

    class Meta(AbstractUser.Meta):
        constraints = [
            UniqueConstraint(
                Lower("email"), name="accounts_user_email_lower_uniq", violation_error_message="Email already in use"
            )
        ]

    def save(self, *args, **kwargs):
        if self.email:
            self.email = normalize_email(self.email)
        return super().save(*args, **kwargs)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name.strip(), self.last_name.strip()) if p)


class Organization(BaseModel):
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="organizations")
    name = models.CharField(max_length=200)
    address_line1 = models.CharField(max_length=200)
    address_line2 = models.CharField(max_length=200, blank=True)
    city = models.CharField(max_length=120)
    state = models.CharField(max_length=120)
    zip_code = models.CharField(max_length=20)

    def __str__(self):
        return self.name


class UserSession(BaseModel):
    """Server-side login session; the id is what the client holds."""

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="auth_sessions")
    expires_at = models.DateTimeField()
    revoked_at = models.DateTimeField(null=True, blank=True)
    remember = models.BooleanField(default=False)

    class Meta:
        indexes = [models.Index(fields=["user", "revoked_at"], name="accounts_session_user_idx")]

    @staticmethod
    def ttl_for(remember: bool) -> timedelta:
        if remember:
            return timedelta(days=settings.AUTH_SESSION_REMEMBER_DAYS)
        return timedelta(hours=settings.AUTH_SESSION_TTL_HOURS)

    @classmethod
    def create_for(cls, user: User, remember: bool = False) -> "UserSession":
        return cls.objects.create(
            user=user,
            remember=remember,
            expires_at=timezone.now() + cls.ttl_for(remember),
        )

    def is_active(self) -> bool:
        return self.revoked_at is None and timezone.now() < self.expires_at
