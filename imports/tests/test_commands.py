from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.utils import timezone

from core.models import Workspace
from imports.models import ImportReviewTransaction


class SeedImportReviewCommandTests(TestCase):
    def setUp(self):
        self.workspace = Workspace.objects.create(name="Home")

    def test_seeds_rows(self):
        out = StringIO()
        call_command("seed_import_review", str(self.workspace.key), "--count", "6", "--selected", "2", stdout=out)
        rows = ImportReviewTransaction.objects.filter(workspace=self.workspace)
        self.assertEqual(rows.count(), 6)
        self.assertEqual(rows.filter(is_selected=True).count(), 2)
        self.assertIn("Staged 6 review rows", out.getvalue())

    def test_selected_out_of_range(self):
        with self.assertRaises(CommandError):
            call_command("seed_import_review", str(self.workspace.key), "--count", "2", "--selected", "3", stdout=StringIO())

    def test_unknown_workspace(self):
        with self.assertRaises(CommandError):
            call_command("seed_import_review", "not-a-uuid", stdout=StringIO())


class PurgeImportReviewCommandTests(TestCase):
    def setUp(self):
        self.workspace = Workspace.objects.create(name="Home")
        call_command("seed_import_review", str(self.workspace.key), "--count", "3", stdout=StringIO())
        first = ImportReviewTransaction.objects.order_by("external_id").first()
        ImportReviewTransaction.objects.filter(key=first.key).update(created_at=timezone.now() - timedelta(days=10))

    def test_dry_run_deletes_nothing(self):
        out = StringIO()
        call_command("purge_import_review", "--older-than-days", "7", "--dry-run", stdout=out)
        self.assertIn("Would delete 1", out.getvalue())
        self.assertEqual(ImportReviewTransaction.objects.count(), 3)

    def test_purges_older_rows(self):
        call_command("purge_import_review", "--older-than-days", "7", stdout=StringIO())
        self.assertEqual(ImportReviewTransaction.objects.count(), 2)

    @override_settings(IMPORT_REVIEW_STALE_DAYS=30)
    def test_default_threshold_from_settings(self):
        call_command("purge_import_review", stdout=StringIO())
        self.assertEqual(ImportReviewTransaction.objects.count(), 3)
