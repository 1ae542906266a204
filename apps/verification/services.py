"""Issue and redeem email challenges.

Every state change on a ``Challenge`` row is a conditional UPDATE whose
affected-row count decides the outcome; nothing is read, checked in Python
and then written back.
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.common import errors
from apps.common.codes import hash_secret, normalize_code, random_code, random_token
from .models import Challenge

log = logging.getLogger(__name__)

ISSUE_RETRIES = 3


@dataclass(frozen=True)
class IssuedChallenge:
    challenge: Challenge
    token: str
    code: str
    expires_at: datetime

    @property
    def purpose(self) -> str:
        return self.challenge.purpose

    @property
    def target(self) -> str:
        return self.challenge.target


def normalize_target(target: str) -> str:
    return (target or "").strip().lower()


def challenge_ttl() -> timedelta:
    return timedelta(minutes=settings.VERIFICATION_TTL_MINUTES)


def max_attempts() -> int:
    return settings.VERIFICATION_MAX_ATTEMPTS


def generate_token() -> str:
    return random_token(32)


def generate_code() -> str:
    return random_code(settings.VERIFICATION_CODE_LENGTH)


def issue(purpose: str, target: str) -> IssuedChallenge:
    """Create a challenge for (purpose, target), superseding any open one."""
    if purpose not in Challenge.valid_purposes():
        raise errors.ValidationError("Unknown verification type.", {"type": "invalid"})
    target = normalize_target(target)
    if not target:
        raise errors.ValidationError("Email is required.", {"email": "required"})

    token = generate_token()
    code = generate_code()
    for attempt in range(ISSUE_RETRIES):
        now = timezone.now()
        try:
            with transaction.atomic():
                superseded = Challenge.objects.filter(
                    purpose=purpose,
                    target=target,
                    consumed_at__isnull=True,
                    invalidated_at__isnull=True,
                ).update(invalidated_at=now, updated_at=now)
                challenge = Challenge.objects.create(
                    purpose=purpose,
                    target=target,
                    token_hash=hash_secret(token),
                    code_hash=hash_secret(normalize_code(code)),
                    expires_at=now + challenge_ttl(),
                )
        except IntegrityError:
            # A concurrent issue for the same pair won the open-row constraint.
            log.warning("Challenge issue collided purpose=%s target=%s attempt=%s", purpose, target, attempt + 1)
            continue
        log.info(
            "Challenge issued id=%s purpose=%s target=%s superseded=%s",
            challenge.id, purpose, target, superseded,
        )
        return IssuedChallenge(challenge=challenge, token=token, code=code, expires_at=challenge.expires_at)
    raise errors.Conflict("Could not issue a verification right now. Try again.")


def _check_redeemable(challenge: Challenge) -> None:
    if challenge.consumed_at is not None:
        raise errors.AlreadyUsed()
    if challenge.invalidated_at is not None:
        if challenge.attempt_count >= max_attempts():
            raise errors.TooManyAttempts()
        # superseded by a newer challenge
        raise errors.AlreadyUsed()
    if challenge.is_expired():
        raise errors.Expired()


def _consume(challenge: Challenge) -> Challenge:
    now = timezone.now()
    updated = Challenge.objects.filter(
        pk=challenge.pk,
        consumed_at__isnull=True,
        invalidated_at__isnull=True,
        expires_at__gt=now,
    ).update(consumed_at=now, updated_at=now)
    if updated != 1:
        log.warning("Challenge consume lost race id=%s", challenge.pk)
        raise errors.Conflict()
    challenge.consumed_at = now
    log.info("Challenge redeemed id=%s purpose=%s target=%s", challenge.pk, challenge.purpose, challenge.target)
    return challenge


def _record_failed_attempt(challenge: Challenge) -> None:
    now = timezone.now()
    locked_out = False
    with transaction.atomic():
        Challenge.objects.filter(pk=challenge.pk).update(attempt_count=F("attempt_count") + 1, updated_at=now)
        attempts = Challenge.objects.filter(pk=challenge.pk).values_list("attempt_count", flat=True).get()
        if attempts >= max_attempts():
            Challenge.objects.filter(
                pk=challenge.pk, consumed_at__isnull=True, invalidated_at__isnull=True
            ).update(invalidated_at=now, updated_at=now)
            locked_out = True
    challenge.attempt_count = attempts
    if locked_out:
        log.warning("Challenge locked after %s attempts id=%s target=%s", attempts, challenge.pk, challenge.target)
        raise errors.TooManyAttempts()
    log.info("Challenge wrong code id=%s attempts=%s", challenge.pk, attempts)
    raise errors.InvalidCode()


def redeem_by_token(token: str, target: str | None = None) -> Challenge:
    """Redeem through the link. ``target`` is the link's target parameter, when present."""
    challenge = None
    if token:
        challenge = Challenge.objects.filter(token_hash=hash_secret(token)).first()
    if challenge is None or (target is not None and normalize_target(target) != challenge.target):
        raise errors.NotFound("This verification link is invalid.")
    _check_redeemable(challenge)
    return _consume(challenge)


def redeem_by_code(purpose: str, target: str, code: str) -> Challenge:
    """Redeem through the typed code.

    A missing challenge and a wrong code both raise ``InvalidCode``.
    """
    challenge = (
        Challenge.objects.filter(purpose=purpose, target=normalize_target(target))
        .order_by("-created_at")
        .first()
    )
    if challenge is None:
        raise errors.InvalidCode()
    _check_redeemable(challenge)
    if not hmac.compare_digest(challenge.code_hash, hash_secret(normalize_code(code))):
        _record_failed_attempt(challenge)
    return _consume(challenge)
