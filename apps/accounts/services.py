"""Credentials, login sessions and the password-reset / email-verification flows.

Login and reset requests never reveal whether an email has an account:
unknown emails take the same code path (hash included) and yield the same
public result.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from django.contrib.auth.hashers import check_password, make_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.utils import timezone

from apps.common import errors
from apps.verification import delivery
from apps.verification import services as verification
from apps.verification.models import Challenge
from apps.verification.tasks import deliver_later
from .models import User, UserSession, normalize_email

log = logging.getLogger(__name__)

# Hash checked when the email is unknown, so both failures cost the same.
_DUMMY_PASSWORD_HASH = None


def _dummy_hash() -> str:
    global _DUMMY_PASSWORD_HASH
    if _DUMMY_PASSWORD_HASH is None:
        _DUMMY_PASSWORD_HASH = make_password(uuid.uuid4().hex)
    return _DUMMY_PASSWORD_HASH


@dataclass
class PasswordResetRequest:
    """Identical for known and unknown emails."""

    email: str
    message: str = "If an account exists for this email, we sent a code and a link to reset the password."


@dataclass
class SignupRequest:
    email: str
    delivered: bool
    expires_at: datetime | None = None


def find_user(email: str) -> User | None:
    email = normalize_email(email)
    if not email:
        return None
    return User.objects.filter(email__iexact=email).first()


def _check_email(email: str) -> str:
    email = normalize_email(email)
    try:
        validate_email(email)
    except DjangoValidationError:
        raise errors.ValidationError("Enter a valid email address.", {"email": "invalid"})
    return email


def login(email: str, password: str, remember: bool = False) -> UserSession:
    user = find_user(email)
    if user is None:
        check_password(password or "", _dummy_hash())
        log.warning("Login failed for email=%s", normalize_email(email))
        raise errors.InvalidCredentials()
    if not (user.check_password(password or "") and user.is_active):
        log.warning("Login failed for email=%s", user.email)
        raise errors.InvalidCredentials()
    session = UserSession.create_for(user, remember=remember)
    User.objects.filter(pk=user.pk).update(last_login=timezone.now())
    log.info("Login success user_id=%s remember=%s", user.id, remember)
    return session


def authenticate_session(session_id) -> User:
    try:
        pk = uuid.UUID(str(session_id))
    except (TypeError, ValueError):
        raise errors.InvalidSession()
    session = UserSession.objects.select_related("user").filter(pk=pk).first()
    if session is None or not session.is_active() or not session.user.is_active:
        raise errors.InvalidSession()
    return session.user


def logout(session_id) -> None:
    try:
        pk = uuid.UUID(str(session_id))
    except (TypeError, ValueError):
        return
    UserSession.objects.filter(pk=pk, revoked_at__isnull=True).update(revoked_at=timezone.now())


def revoke_all_sessions(user: User) -> int:
    revoked = UserSession.objects.filter(user=user, revoked_at__isnull=True).update(revoked_at=timezone.now())
    log.info("Revoked %s sessions for user_id=%s", revoked, user.id)
    return revoked


def start_signup(email: str) -> SignupRequest:
    email = _check_email(email)
    if find_user(email) is not None:
        raise errors.ValidationError("A user already exists with this email.", {"email": "taken"})
    issued = verification.issue(Challenge.PURPOSE_ONBOARDING, email)
    result = delivery.deliver(issued)
    return SignupRequest(email=email, delivered=result.ok, expires_at=issued.expires_at)


def request_password_reset(email: str) -> PasswordResetRequest:
    email = normalize_email(email)
    user = find_user(email)
    if user is None or not user.is_active:
        log.info("Password reset requested for unknown email=%s", email)
        return PasswordResetRequest(email=email)
    issued = verification.issue(Challenge.PURPOSE_RESET, user.email)
    # queued, so a known email answers as fast as an unknown one
    deliver_later(issued)
    return PasswordResetRequest(email=email)


def complete_reset(challenge: Challenge, new_password: str, confirm_password: str, sign_in: bool = False) -> UserSession | None:
    """Set a new password after the reset challenge was redeemed.

    Every existing session of the user is revoked.
    """
    if challenge is None or challenge.purpose != Challenge.PURPOSE_RESET or challenge.consumed_at is None:
        raise errors.ValidationError("Password reset was not verified.")
    if timezone.now() - challenge.consumed_at > verification.challenge_ttl():
        raise errors.ValidationError("Password reset session expired. Request a new one.")
    if not new_password or not confirm_password:
        raise errors.ValidationError(
            "Please fill in all fields.",
            {k: "required" for k, v in (("password", new_password), ("confirm_password", confirm_password)) if not v},
        )
    if new_password != confirm_password:
        raise errors.ValidationError("Passwords must match.", {"confirm_password": "mismatch"})

    user = find_user(challenge.target)
    if user is None:
        raise errors.NotFound("Account not found.")
    with transaction.atomic():
        # a redeemed reset challenge authorizes exactly one password change
        spent = Challenge.objects.filter(
            pk=challenge.pk, consumed_at__isnull=False, invalidated_at__isnull=True
        ).update(invalidated_at=timezone.now(), updated_at=timezone.now())
        if spent != 1:
            log.warning("Password reset replay refused challenge=%s", challenge.pk)
            raise errors.AlreadyUsed("This password reset was already used. Request a new one.")
        user.set_password(new_password)
        user.save(update_fields=["password", "updated_at"])
        revoke_all_sessions(user)
        session = UserSession.create_for(user) if sign_in else None
    log.info("Password reset applied user_id=%s", user.id)
    return session


def request_email_verification(user: User):
    issued = verification.issue(Challenge.PURPOSE_VERIFY_EMAIL, user.email)
    return delivery.deliver(issued)


def mark_email_verified(challenge: Challenge) -> User | None:
    if challenge.purpose != Challenge.PURPOSE_VERIFY_EMAIL or challenge.consumed_at is None:
        raise errors.ValidationError("Verification does not confirm an email.")
    updated = User.objects.filter(email__iexact=challenge.target, email_verified_at__isnull=True).update(
        email_verified_at=challenge.consumed_at
    )
    if updated:
        log.info("Email verified email=%s", challenge.target)
    return find_user(challenge.target)
