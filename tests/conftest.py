import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache

from apps.verification import delivery

from .utils import RecordingMailProvider


@pytest.fixture(autouse=True)
def _clear_cache():
    # rate-limit and cooldown counters live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def mailbox(monkeypatch):
    provider = RecordingMailProvider()
    monkeypatch.setattr(delivery, "get_mail_provider", lambda: provider)
    return provider


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(
        username="ann@example.com",
        email="ann@example.com",
        password="old-pass",
        first_name="Ann",
        last_name="Lee",
    )
