"""Tests for the watch_work management command."""

import uuid
from io import StringIO

import pytest
from django.contrib.auth.models import User
from django.core.management import CommandError, call_command
from django.test import TestCase

from src.works.models import Work


class TestWatchWorkCommand(TestCase):

    def test_prints_readiness_for_idle_work(self):
        user = User.objects.create_user(username="composer", password="test")
        work = Work.objects.create(user=user, is_improvisation=True)
        out = StringIO()

        call_command("watch_work", str(work.id), stdout=out)

        output = out.getvalue()
        assert "[uploaded] 15% Upload the audio to start analysis. -> Upload Audio" in output
        assert "Work is idle" in output

    def test_unknown_work(self):
        with pytest.raises(CommandError):
            call_command("watch_work", str(uuid.uuid4()), stdout=StringIO())
