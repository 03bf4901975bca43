"""
Delete staged review rows that have been waiting too long.

USAGE:
  python manage.py purge_import_review                   # IMPORT_REVIEW_STALE_DAYS
  python manage.py purge_import_review --older-than-days 7
  python manage.py purge_import_review --dry-run
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from imports.models import ImportReviewTransaction
from imports.services import purge_stale

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Delete staged import review rows older than N days across all workspaces."

    def add_arguments(self, parser):
        parser.add_argument(
            "--older-than-days",
            type=int,
            default=None,
            help="Age threshold in days (defaults to IMPORT_REVIEW_STALE_DAYS).",
        )
        parser.add_argument("--dry-run", action="store_true", help="Only report how many rows would go.")

    def handle(self, *args, **options):
        days = options["older_than_days"]
        if days is None:
            days = getattr(settings, "IMPORT_REVIEW_STALE_DAYS", 30)
        if days < 0:
            raise CommandError("--older-than-days must be zero or more.")

        age = timedelta(days=days)
        if options["dry_run"]:
            count = ImportReviewTransaction.objects.filter(created_at__lt=timezone.now() - age).count()
            self.stdout.write(f"Would delete {count} staged rows older than {days} days.")
            return

        deleted = purge_stale(age)
        logger.info("Purged %d staged review rows older than %d days", deleted, days)
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} staged rows older than {days} days."))
