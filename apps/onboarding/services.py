"""Signup workflow: verified -> profile_submitted -> organization_submitted -> complete.

Each submit locks the session row, checks the current step and moves it one
step forward. Reaching ``complete`` creates the User, its Organization and a
first UserSession in the same transaction and deletes the onboarding row.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.accounts.models import Organization, User, UserSession
from apps.common import errors
from apps.verification.models import Challenge
from .models import OnboardingSession

log = logging.getLogger(__name__)

ONBOARDING_PURPOSES = {Challenge.PURPOSE_ONBOARDING, Challenge.PURPOSE_VERIFY_EMAIL}


@dataclass
class OnboardingResult:
    user: User
    organization: Organization
    session: UserSession


def _clean(value) -> str:
    return (value or "").strip()


def _required(fields: dict[str, str]) -> dict[str, str]:
    return {name: "required" for name, value in fields.items() if not value}


def start(challenge: Challenge) -> OnboardingSession:
    """Open the workflow for an email proven by a redeemed challenge."""
    if challenge.purpose not in ONBOARDING_PURPOSES or challenge.consumed_at is None:
        raise errors.ValidationError("Verification does not allow signup.")
    now = timezone.now()
    with transaction.atomic():
        # one workflow per email; an older unfinished one is dropped
        OnboardingSession.objects.filter(email=challenge.target).delete()
        session = OnboardingSession.objects.create(
            email=challenge.target,
            expires_at=now + timedelta(minutes=settings.ONBOARDING_SESSION_TTL_MINUTES),
        )
    log.info("Onboarding started session=%s email=%s", session.id, session.email)
    return session


def _lock(session_id) -> OnboardingSession:
    try:
        pk = uuid.UUID(str(session_id))
    except (TypeError, ValueError):
        raise errors.InvalidSession()
    session = OnboardingSession.objects.select_for_update().filter(pk=pk).first()
    if session is None or session.step == OnboardingSession.STEP_COMPLETE or session.is_expired():
        raise errors.InvalidSession()
    return session


def _expect_step(session: OnboardingSession, step: str) -> None:
    if session.step != step:
        log.info("Onboarding out of order session=%s at=%s expected=%s", session.id, session.step, step)
        raise errors.OutOfOrder()


def submit_profile(session_id, first_name: str, last_name: str, password: str, confirm_password: str, remember: bool = False) -> OnboardingSession:
    first_name, last_name = _clean(first_name), _clean(last_name)
    missing = _required(
        {"first_name": first_name, "last_name": last_name, "password": password, "confirm_password": confirm_password}
    )
    with transaction.atomic():
        session = _lock(session_id)
        _expect_step(session, OnboardingSession.STEP_VERIFIED)
        if missing:
            raise errors.ValidationError("Please fill in all fields.", missing)
        if password != confirm_password:
            raise errors.ValidationError("Passwords must match.", {"confirm_password": "mismatch"})
        session.first_name = first_name
        session.last_name = last_name
        session.password_hash = make_password(password)
        session.remember = bool(remember)
        session.step = OnboardingSession.STEP_PROFILE
        session.save()
    log.info("Onboarding profile submitted session=%s", session.id)
    return session


def submit_organization(
    session_id,
    name: str,
    address_line1: str,
    city: str,
    state: str,
    zip_code: str,
    address_line2: str = "",
) -> OnboardingResult:
    fields = {
        "name": _clean(name),
        "address_line1": _clean(address_line1),
        "city": _clean(city),
        "state": _clean(state),
        "zip_code": _clean(zip_code),
    }
    missing = _required(fields)
    with transaction.atomic():
        session = _lock(session_id)
        _expect_step(session, OnboardingSession.STEP_PROFILE)
        if missing:
            raise errors.ValidationError("Please fill in all required fields.", missing)
        session.organization_name = fields["name"]
        session.address_line1 = fields["address_line1"]
        session.address_line2 = _clean(address_line2)
        session.city = fields["city"]
        session.state = fields["state"]
        session.zip_code = fields["zip_code"]
        session.step = OnboardingSession.STEP_ORGANIZATION
        session.save()
        result = _finalize(session)
    log.info("Onboarding complete user_id=%s organization_id=%s", result.user.id, result.organization.id)
    return result


def _finalize(session: OnboardingSession) -> OnboardingResult:
    if User.objects.filter(email__iexact=session.email).exists():
        raise errors.ValidationError("A user already exists with this email.", {"email": "taken"})
    try:
        with transaction.atomic():
            user = User.objects.create(
                username=session.email,
                email=session.email,
                first_name=session.first_name,
                last_name=session.last_name,
                password=session.password_hash,
                email_verified_at=timezone.now(),
            )
    except IntegrityError:
        raise errors.ValidationError("A user already exists with this email.", {"email": "taken"})
    organization = Organization.objects.create(
        owner=user,
        name=session.organization_name,
        address_line1=session.address_line1,
        address_line2=session.address_line2,
        city=session.city,
        state=session.state,
        zip_code=session.zip_code,
    )
    auth_session = UserSession.create_for(user, remember=session.remember)
    session.delete()
    return OnboardingResult(user=user, organization=organization, session=auth_session)
