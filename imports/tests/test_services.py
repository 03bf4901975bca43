from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from core.exceptions import InvalidInput
from core.models import PayeeMatchingRule, Transaction, Workspace
from imports import services
from imports.models import DuplicateStatus, ImportReviewTransaction

from .factories import make_ledger_transaction, sample_statement


class ValidateUploadTests(TestCase):
    def test_rejects_missing_empty_and_unsupported_files(self):
        for filename, size in [(None, 10), ("a.ofx", 0), ("a.pdf", 10), ("noext", 10)]:
            with self.subTest(filename=filename, size=size):
                with self.assertRaises(InvalidInput) as ctx:
                    services.validate_upload(filename, size)
                self.assertEqual(ctx.exception.field, "file")

    @override_settings(IMPORT_MAX_UPLOAD_BYTES=1024 * 1024)
    def test_rejects_oversized_files(self):
        with self.assertRaises(InvalidInput):
            services.validate_upload("a.ofx", 1024 * 1024 + 1)
        services.validate_upload("a.OFX", 1024 * 1024)


class ImportFileTests(TestCase):
    def setUp(self):
        self.workspace = Workspace.objects.create(name="Home")

    def test_new_transactions_are_staged_and_selected(self):
        result = services.import_file(self.workspace, sample_statement(10), "jan.ofx")
        self.assertEqual(result.imported_count, 10)
        self.assertEqual(result.new_count, 10)
        staged = ImportReviewTransaction.objects.filter(workspace=self.workspace)
        self.assertEqual(staged.count(), 10)
        self.assertTrue(all(row.is_selected for row in staged))
        self.assertEqual(Transaction.objects.count(), 0)

    def test_second_upload_of_same_file_is_exact_duplicate(self):
        services.import_file(self.workspace, sample_statement(5), "jan.ofx")
        result = services.import_file(self.workspace, sample_statement(5), "jan.ofx")
        self.assertEqual(result.new_count, 0)
        self.assertEqual(result.exact_duplicate_count, 5)
        dupes = ImportReviewTransaction.objects.filter(duplicate_status=DuplicateStatus.EXACT_DUPLICATE)
        self.assertEqual(dupes.count(), 5)
        self.assertFalse(any(row.is_selected for row in dupes))
        self.assertTrue(all(row.duplicate_of_key for row in dupes))

    def test_corrupted_file_stages_nothing(self):
        result = services.import_file(self.workspace, b"garbage garbage garbage", "bad.ofx")
        self.assertEqual(result.imported_count, 0)
        self.assertTrue(result.errors)
        self.assertFalse(ImportReviewTransaction.objects.exists())

    def test_result_payload_shape(self):
        payload = services.import_file(self.workspace, sample_statement(1), "jan.ofx").as_dict()
        self.assertEqual(
            set(payload),
            {"ImportedCount", "NewCount", "ExactDuplicateCount", "PotentialDuplicateCount", "Errors"},
        )


class PendingReviewTests(TestCase):
    def setUp(self):
        self.workspace = Workspace.objects.create(name="Home")
        services.seed_review_queue(self.workspace, 30)

    def test_pagination_clamps(self):
        page = services.get_pending_review(self.workspace, page_number=0, page_size=-5)
        self.assertEqual(page.metadata.page_number, 1)
        self.assertEqual(page.metadata.page_size, 50)
        self.assertEqual(len(page.items), 30)

        page = services.get_pending_review(self.workspace, page_number=1, page_size=5000)
        self.assertEqual(page.metadata.page_size, 1000)

    def test_metadata(self):
        page = services.get_pending_review(self.workspace, page_number=2, page_size=10)
        meta = page.metadata
        self.assertEqual(meta.total_count, 30)
        self.assertEqual(meta.total_pages, 3)
        self.assertTrue(meta.has_previous_page)
        self.assertTrue(meta.has_next_page)
        self.assertEqual((meta.first_item, meta.last_item), (11, 20))

    def test_default_sort_is_newest_date_first(self):
        items = services.get_pending_review(self.workspace).items
        dates = [item.date for item in items]
        self.assertEqual(dates, sorted(dates, reverse=True))

    def test_sort_by_amount_and_unknown_key(self):
        amounts = [i.amount for i in services.get_pending_review(self.workspace, sort_by="amount").items]
        self.assertEqual(amounts, sorted(amounts))
        fallback = [i.date for i in services.get_pending_review(self.workspace, sort_by="bogus").items]
        self.assertEqual(fallback, sorted(fallback, reverse=True))

    def test_search_by_payee_and_category(self):
        ImportReviewTransaction.objects.create(
            workspace=self.workspace, date=date(2024, 1, 1), amount=Decimal("-4.00"), payee="Starbucks #12"
        )
        PayeeMatchingRule.objects.create(workspace=self.workspace, payee_pattern="starbucks", category="Coffee")

        by_payee = services.get_pending_review(self.workspace, search_text="STARBUCKS").items
        self.assertEqual([i.payee for i in by_payee], ["Starbucks #12"])
        self.assertEqual(by_payee[0].category, "Coffee")

        by_category = services.get_pending_review(self.workspace, search_text="coff").items
        self.assertEqual([i.payee for i in by_category], ["Starbucks #12"])

    def test_other_workspace_rows_are_invisible(self):
        other = Workspace.objects.create(name="Other")
        services.seed_review_queue(other, 3)
        self.assertEqual(services.get_pending_review(self.workspace).metadata.total_count, 30)


class SelectionTests(TestCase):
    def setUp(self):
        self.workspace = Workspace.objects.create(name="Home")
        self.rows = services.seed_review_queue(self.workspace, 5, selected_count=2)

    def test_summary(self):
        summary = services.get_summary(self.workspace)
        self.assertEqual(summary["TotalCount"], 5)
        self.assertEqual(summary["SelectedCount"], 2)
        self.assertEqual(summary["NewCount"], 5)
        self.assertEqual(summary["ExactDuplicateCount"], 0)

    def test_set_select_and_deselect_all(self):
        services.set_selection(self.workspace, [self.rows[4].key], True)
        self.assertEqual(services.get_summary(self.workspace)["SelectedCount"], 3)
        services.select_all(self.workspace)
        self.assertEqual(services.get_summary(self.workspace)["SelectedCount"], 5)
        services.deselect_all(self.workspace)
        self.assertEqual(services.get_summary(self.workspace)["SelectedCount"], 0)

    def test_seed_rejects_selected_outside_range(self):
        with self.assertRaises(ValueError):
            services.seed_review_queue(self.workspace, 2, selected_count=3)


class CompleteReviewTests(TestCase):
    def setUp(self):
        self.workspace = Workspace.objects.create(name="Home")
        services.import_file(self.workspace, sample_statement(4), "jan.ofx")
        self.rows = list(ImportReviewTransaction.objects.order_by("external_id"))

    def test_accepts_selected_and_clears_queue(self):
        result = services.complete_review(self.workspace, [self.rows[0].key, self.rows[1].key])
        self.assertEqual((result.accepted_count, result.rejected_count), (2, 2))
        self.assertFalse(ImportReviewTransaction.objects.filter(workspace=self.workspace).exists())
        ledger = Transaction.objects.filter(workspace=self.workspace).order_by("external_id")
        self.assertEqual([t.external_id for t in ledger], ["FIT0001", "FIT0002"])

    def test_empty_keys_rejected(self):
        for keys in (None, []):
            with self.assertRaises(InvalidInput):
                services.complete_review(self.workspace, keys)
        self.assertEqual(ImportReviewTransaction.objects.count(), 4)

    def test_unknown_keys_are_ignored(self):
        other = Workspace.objects.create(name="Other")
        foreign = services.seed_review_queue(other, 1)[0]
        result = services.complete_review(self.workspace, [foreign.key])
        self.assertEqual((result.accepted_count, result.rejected_count), (0, 4))
        self.assertTrue(ImportReviewTransaction.objects.filter(key=foreign.key).exists())
        self.assertFalse(Transaction.objects.filter(workspace=other).exists())

    def test_category_applied_and_rule_usage_recorded(self):
        rule = PayeeMatchingRule.objects.create(workspace=self.workspace, payee_pattern="Merchant 1", category="Groceries")
        services.complete_review(self.workspace, [self.rows[0].key])
        tx = Transaction.objects.get(workspace=self.workspace)
        self.assertEqual(tx.category, "Groceries")
        rule.refresh_from_db()
        self.assertEqual(rule.match_count, 1)
        self.assertIsNotNone(rule.last_used_at)

    def test_reimport_after_completion_is_exact_duplicate_of_ledger(self):
        services.complete_review(self.workspace, [row.key for row in self.rows])
        result = services.import_file(self.workspace, sample_statement(4), "jan.ofx")
        self.assertEqual(result.exact_duplicate_count, 4)
        ledger_keys = set(Transaction.objects.values_list("key", flat=True))
        staged_refs = set(ImportReviewTransaction.objects.values_list("duplicate_of_key", flat=True))
        self.assertEqual(staged_refs, ledger_keys)


class DiscardAndPurgeTests(TestCase):
    def test_delete_all_is_idempotent(self):
        workspace = Workspace.objects.create(name="Home")
        services.seed_review_queue(workspace, 3)
        self.assertEqual(services.delete_all(workspace), 3)
        self.assertEqual(services.delete_all(workspace), 0)

    def test_purge_stale(self):
        workspace = Workspace.objects.create(name="Home")
        old, fresh = services.seed_review_queue(workspace, 2)
        ImportReviewTransaction.objects.filter(key=old.key).update(created_at=timezone.now() - timedelta(days=40))
        self.assertEqual(services.purge_stale(timedelta(days=30)), 1)
        self.assertEqual(list(ImportReviewTransaction.objects.values_list("key", flat=True)), [fresh.key])
