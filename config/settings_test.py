from .settings import *  # noqa: F401,F403

DEBUG = False
SECRET_KEY = "test-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "auth-tests",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CELERY_TASK_ALWAYS_EAGER = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

MAIL_PROVIDER = "console"
APP_BASE_URL = "http://testserver"

SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False
