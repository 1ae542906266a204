import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import Client
from django.urls import reverse

from apps.accounts.models import Organization
from apps.onboarding.models import OnboardingSession
from apps.verification.models import Challenge

from .utils import extract_code, extract_link


User = get_user_model()

PROFILE = {"first_name": "Ann", "last_name": "Lee", "password": "p1", "confirm_password": "p1", "remember": "on"}
ORG = {
    "name": "Acme",
    "address_line1": "1 Rd",
    "address_line2": "",
    "city": "Metropolis",
    "state": "CA",
    "zip_code": "90210",
}


def _signup(client, mailbox, email):
    r = client.post(reverse("accounts:auth_signup"), {"email": email})
    assert r.status_code == 200
    assert r.json()["message"] == "Check your email"
    msg = mailbox.last_for(email.lower())
    assert msg is not None
    return msg


@pytest.mark.django_db
def test_onboarding_with_link(client, mailbox):
    msg = _signup(client, mailbox, "New.User@Example.com")
    assert msg.from_email == "onboarding@resend.dev"
    assert "welcome" in msg.subject.lower()

    url, qs = extract_link(msg.body)
    r = client.get(url)
    assert r.status_code == 200
    assert r.json()["target"] == "new.user@example.com"
    assert Challenge.objects.get().consumed_at is None

    r = client.post(reverse("verification:verify"), qs)
    assert r.status_code == 200
    assert r.json()["redirect"] == reverse("onboarding:profile")

    r = client.post(reverse("onboarding:profile"), PROFILE)
    assert r.json()["redirect"] == reverse("onboarding:organization")

    r = client.post(reverse("onboarding:organization"), ORG)
    assert r.status_code == 200
    assert r.json()["redirect"] == reverse("accounts:auth_me")

    me = client.get(reverse("accounts:auth_me")).json()
    assert me["email"] == "new.user@example.com"
    assert me["full_name"] == "Ann Lee"
    assert me["email_verified"] is True
    assert [o["name"] for o in me["organizations"]] == ["Acme"]
    assert OnboardingSession.objects.count() == 0

    r = client.post(reverse("accounts:auth_logout"))
    assert r.status_code == 200
    assert client.get(reverse("accounts:auth_me")).status_code == 401


@pytest.mark.django_db
def test_onboarding_with_short_code_over_htmx(client, mailbox):
    msg = _signup(client, mailbox, "short@example.com")
    code = extract_code(msg.body)

    r = client.post(
        reverse("verification:verify_code"),
        {"target": "short@example.com", "type": Challenge.PURPOSE_ONBOARDING, "code": code},
        HTTP_HX_REQUEST="true",
    )
    assert r.status_code == 204
    assert r.headers.get("HX-Redirect") == reverse("onboarding:profile")

    # the link from the same email is dead now
    _, qs = extract_link(msg.body)
    r = client.post(reverse("verification:verify"), qs)
    assert r.status_code == 410
    assert r.json()["error"] == "already_used"


@pytest.mark.django_db
def test_organization_before_profile_is_rejected(client, mailbox):
    msg = _signup(client, mailbox, "order@example.com")
    client.post(
        reverse("verification:verify_code"),
        {"target": "order@example.com", "type": Challenge.PURPOSE_ONBOARDING, "code": extract_code(msg.body)},
    )

    r = client.post(reverse("onboarding:organization"), ORG)
    assert r.status_code == 409
    assert r.json()["error"] == "out_of_order"

    r = client.post(reverse("onboarding:profile"), {**PROFILE, "confirm_password": "nope"})
    assert r.status_code == 400
    assert r.json()["fields"] == {"confirm_password": "mismatch"}


@pytest.mark.django_db
def test_onboarding_steps_need_a_verified_session(client):
    r = client.post(reverse("onboarding:profile"), PROFILE)
    assert r.status_code == 401
    assert r.json()["error"] == "invalid_session"


@pytest.mark.django_db
def test_wrong_code_reply_does_not_reveal_pending_challenge(client, mailbox):
    _signup(client, mailbox, "someone@example.com")

    wrong = client.post(
        reverse("verification:verify_code"),
        {"target": "someone@example.com", "type": Challenge.PURPOSE_ONBOARDING, "code": "ZZZZZZ"},
    )
    missing = client.post(
        reverse("verification:verify_code"),
        {"target": "nobody@example.com", "type": Challenge.PURPOSE_ONBOARDING, "code": "ZZZZZZ"},
    )
    assert wrong.status_code == missing.status_code == 400
    assert wrong.json() == missing.json() == {"error": "invalid_code", "message": "Invalid code."}


@pytest.mark.django_db
def test_signup_for_existing_account_is_rejected(client, user, mailbox):
    r = client.post(reverse("accounts:auth_signup"), {"email": "Ann@Example.com"})
    assert r.status_code == 400
    assert r.json()["fields"] == {"email": "taken"}
    assert mailbox.outbox == []


@pytest.mark.django_db
def test_login_as_existing_user(client, user):
    r = client.post(reverse("accounts:auth_login"), {"email": "ann@example.com", "password": "old-pass"})
    assert r.status_code == 200

    me = client.get(reverse("accounts:auth_me")).json()
    assert me["full_name"] == "Ann Lee"


@pytest.mark.django_db
def test_login_failures_share_one_shape(client, user):
    wrong = client.post(reverse("accounts:auth_login"), {"email": "ann@example.com", "password": "bad"})
    unknown = client.post(reverse("accounts:auth_login"), {"email": "ghost@example.com", "password": "bad"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()
    assert wrong.json()["message"] == "Invalid email or password."


@pytest.mark.django_db
def test_login_is_rate_limited(client, user):
    for _ in range(20):
        client.post(reverse("accounts:auth_login"), {"email": "ann@example.com", "password": "bad"})

    r = client.post(reverse("accounts:auth_login"), {"email": "ann@example.com", "password": "old-pass"})
    assert r.status_code == 429
    assert int(r.headers["Retry-After"]) > 0


@pytest.mark.django_db
def test_reset_password_with_link(client, user, mailbox, django_capture_on_commit_callbacks):
    other_device = Client()
    other_device.post(reverse("accounts:auth_login"), {"email": "ann@example.com", "password": "old-pass"})
    assert other_device.get(reverse("accounts:auth_me")).status_code == 200

    with django_capture_on_commit_callbacks(execute=True):
        r = client.post(reverse("accounts:auth_forgot"), {"email": "ann@example.com"})
    assert r.status_code == 200
    msg = mailbox.last_for("ann@example.com")
    assert "password reset" in msg.subject.lower()

    _, qs = extract_link(msg.body)
    r = client.post(reverse("verification:verify"), qs)
    assert r.json()["redirect"] == reverse("accounts:auth_reset")

    r = client.post(reverse("accounts:auth_reset"), {"password": "new-pass", "confirm_password": "new-pass"})
    assert r.status_code == 200
    assert r.json()["redirect"] == reverse("accounts:auth_login")

    # the reset cannot be applied twice
    r = client.post(reverse("accounts:auth_reset"), {"password": "x", "confirm_password": "x"})
    assert r.status_code == 401

    assert other_device.get(reverse("accounts:auth_me")).status_code == 401

    r = client.post(reverse("accounts:auth_login"), {"email": "ann@example.com", "password": "old-pass"})
    assert r.status_code == 401
    r = client.post(reverse("accounts:auth_login"), {"email": "ann@example.com", "password": "new-pass"})
    assert r.status_code == 200


@pytest.mark.django_db
def test_reset_password_with_short_code(client, user, mailbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        client.post(reverse("accounts:auth_forgot"), {"email": "ann@example.com"})
    code = extract_code(mailbox.last_for("ann@example.com").body)

    r = client.post(
        reverse("verification:verify_code"),
        {"target": "ann@example.com", "type": Challenge.PURPOSE_RESET, "code": code},
    )
    assert r.json()["redirect"] == reverse("accounts:auth_reset")

    r = client.post(reverse("accounts:auth_reset"), {"password": "new-pass", "confirm_password": "other"})
    assert r.status_code == 400
    r = client.post(reverse("accounts:auth_reset"), {"password": "new-pass", "confirm_password": "new-pass"})
    assert r.status_code == 200


@pytest.mark.django_db
def test_forgot_password_for_unknown_email_looks_the_same(client, user, mailbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        known = client.post(reverse("accounts:auth_forgot"), {"email": "ann@example.com"})
        unknown = client.post(reverse("accounts:auth_forgot"), {"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["message"] == unknown.json()["message"]
    assert [m.to for m in mailbox.outbox] == ["ann@example.com"]


@pytest.mark.django_db
def test_reset_without_verification_is_refused(client, user):
    r = client.post(reverse("accounts:auth_reset"), {"password": "new-pass", "confirm_password": "new-pass"})
    assert r.status_code == 401
    user.refresh_from_db()
    assert user.check_password("old-pass")


@pytest.mark.django_db
def test_resend_supersedes_and_has_cooldown(client, mailbox):
    first = _signup(client, mailbox, "again@example.com")

    r = client.post(reverse("verification:code_resend"), {"target": "again@example.com", "type": Challenge.PURPOSE_ONBOARDING})
    assert r.status_code == 200
    second = mailbox.last_for("again@example.com")
    assert second is not first

    r = client.post(reverse("verification:code_resend"), {"target": "again@example.com", "type": Challenge.PURPOSE_ONBOARDING})
    assert r.status_code == 429

    _, old = extract_link(first.body)
    assert client.post(reverse("verification:verify"), old).status_code == 410
    _, new = extract_link(second.body)
    assert client.post(reverse("verification:verify"), new).status_code == 200


@pytest.mark.django_db
def test_verify_email_for_signed_in_user(client, user, mailbox):
    client.post(reverse("accounts:auth_login"), {"email": "ann@example.com", "password": "old-pass"})

    r = client.post(reverse("accounts:auth_verify_email"))
    assert r.status_code == 200
    _, qs = extract_link(mailbox.last_for("ann@example.com").body)

    r = client.post(reverse("verification:verify"), qs)
    assert r.json()["redirect"] == reverse("accounts:auth_me")
    assert client.get(reverse("accounts:auth_me")).json()["email_verified"] is True


@pytest.mark.django_db
def test_purge_command(user):
    call_command("purge_auth_state")
    assert User.objects.count() == 1
    assert Organization.objects.count() == 0
