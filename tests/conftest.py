import tempfile

import django
from django.conf import settings


def pytest_configure():
    """Configure Django settings before tests."""
    if not settings.configured:
        settings.configure(
            DEBUG=True,
            SECRET_KEY="test-secret-key-for-testing-only",
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME": ":memory:",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.auth",
                "django.contrib.contenttypes",
                "rest_framework",
                "rest_framework_simplejwt",
                "src.works",
            ],
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            USE_TZ=True,
            TIME_ZONE="UTC",
            ROOT_URLCONF="config.urls",
            REST_FRAMEWORK={
                "DEFAULT_AUTHENTICATION_CLASSES": [
                    "rest_framework_simplejwt.authentication.JWTAuthentication",
                ],
                "DEFAULT_PERMISSION_CLASSES": [
                    "rest_framework.permissions.IsAuthenticated",
                ],
            },
            CHANNEL_LAYERS={
                "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
            },
            MEDIA_ROOT=tempfile.mkdtemp(prefix="test_media_"),
            MEDIA_URL="/media/",
            LLM_MODEL="gemini/gemini-2.0-flash",
            GENERATION_TIMEOUT_SECONDS=5,
            GENERATION_TRACING=False,
            WORK_ANALYZER="simulated",
            WORK_ANALYSIS_TIMEOUT_SECONDS=600,
            WORK_MAX_AUDIO_BYTES=1024 * 1024,
            WORK_POLL_INTERVAL_ANALYZING=5,
            WORK_POLL_INTERVAL_STAGES=15,
            WORK_AUTOSAVE_DELAY_SECONDS=0.01,
        )
    django.setup()


def pytest_sessionstart(session):
    """Create database tables for in-memory SQLite test DB."""
    from django.core.management import call_command

    call_command("migrate", "--run-syncdb", verbosity=0)
