"""
Celery application for the work pipeline.

Run a worker and the beat scheduler (which times out stalled analyses):

    celery -A src.tasks.celery worker -l info
    celery -A src.tasks.celery beat -l info
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Stage tasks touch the ORM, so Django must be ready first
import django
django.setup()

app = Celery("work_pipeline")
app.config_from_object("django.conf:settings", namespace="CELERY")

# Stage tasks and the stalled-analysis sweep
import src.works.tasks  # noqa: F401, E402
