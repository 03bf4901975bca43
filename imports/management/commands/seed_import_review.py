"""
Stage deterministic review rows for a workspace.

USAGE:
  python manage.py seed_import_review <workspace-key> --count 200 --selected 50
"""
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from core.models import Workspace
from imports.services import seed_review_queue


class Command(BaseCommand):
    help = "Stage N deterministic 'New' review rows for a workspace (local testing)."

    def add_arguments(self, parser):
        parser.add_argument("workspace_key", help="Workspace key (UUID).")
        parser.add_argument("--count", type=int, default=25, help="Rows to create.")
        parser.add_argument("--selected", type=int, default=0, help="How many of them start selected.")

    def handle(self, *args, **options):
        try:
            workspace = Workspace.objects.get(key=options["workspace_key"])
        except (Workspace.DoesNotExist, ValidationError):
            raise CommandError(f"Workspace {options['workspace_key']} not found.")

        try:
            rows = seed_review_queue(workspace, options["count"], options["selected"])
        except ValueError as exc:
            raise CommandError(str(exc))

        self.stdout.write(
            self.style.SUCCESS(
                f"Staged {len(rows)} review rows ({options['selected']} selected) in workspace {workspace.key}."
            )
        )
