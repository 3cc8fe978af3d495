"""Follow a work from the command line until its pipeline goes idle."""

import json

from django.core.management.base import BaseCommand, CommandError

from src.works.models import Work
from src.works.polling import watch


class Command(BaseCommand):
    help = "Poll a work and print its readiness whenever it changes"

    def add_arguments(self, parser):
        parser.add_argument("work_id")
        parser.add_argument(
            "--max-polls", type=int, default=None, help="Stop after this many refreshes"
        )
        parser.add_argument("--json", action="store_true", help="Print full snapshots as JSON")

    def handle(self, *args, **options):
        work_id = options["work_id"]
        if Work.get_or_none(work_id) is None:
            raise CommandError(f"Work {work_id} not found")

        def on_change(snapshot):
            if options["json"]:
                self.stdout.write(json.dumps(snapshot, indent=2))
                return
            readiness = snapshot["readiness"]
            action = readiness["next_action"]
            self.stdout.write(
                f"[{snapshot['status']}] {readiness['progress_percent']}% "
                f"{readiness['message']}"
                + (f" -> {action['label']}" if action else "")
            )

        last = watch(work_id, on_change, max_polls=options["max_polls"])
        if last is None:
            self.stdout.write(self.style.WARNING("Work was deleted"))
        elif last["poll"]["interval_seconds"] is None:
            self.stdout.write(self.style.SUCCESS("Work is idle"))
        else:
            self.stdout.write("Stopped watching")
