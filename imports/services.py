"""
Import review services: ingest an uploaded statement, query the staged
queue, maintain the advisory selection and complete or discard the review.

Every function takes the workspace explicitly; nothing here reads the
current request. Writes that depend on a read of the queue (upload and
completion) lock the workspace row first so they run one at a time per
workspace.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from core.exceptions import InvalidInput
from core.models import Transaction, Workspace
from core.pagination import PageMetadata, normalize_page, paginate
from core.payee_matching import find_best_match, find_best_rule, record_rule_usage, rules_for_workspace

from .duplicates import classify_batch
from .models import DuplicateStatus, ImportReviewTransaction
from .parsing import ParseError, file_extension, parse_statement

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
#    Upload
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class ImportResult:
    imported_count: int = 0
    new_count: int = 0
    exact_duplicate_count: int = 0
    potential_duplicate_count: int = 0
    errors: List[ParseError] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "ImportedCount": self.imported_count,
            "NewCount": self.new_count,
            "ExactDuplicateCount": self.exact_duplicate_count,
            "PotentialDuplicateCount": self.potential_duplicate_count,
            "Errors": [error.as_dict() for error in self.errors],
        }


def allowed_extensions() -> List[str]:
    return [ext.lower() for ext in getattr(settings, "IMPORT_ALLOWED_EXTENSIONS", [".ofx", ".qfx", ".csv"])]


def max_upload_bytes() -> int:
    return getattr(settings, "IMPORT_MAX_UPLOAD_BYTES", 50 * 1024 * 1024)


def validate_upload(filename: Optional[str], size: Optional[int]) -> None:
    """Raise InvalidInput unless the file is present, non-empty, supported and small enough."""
    if not filename:
        raise InvalidInput("file", "No file was uploaded.")
    if not size:
        raise InvalidInput("file", "The uploaded file is empty.")

    extensions = allowed_extensions()
    if file_extension(filename) not in extensions:
        raise InvalidInput("file", f"Unsupported file type. Allowed: {', '.join(extensions)}.")

    limit = max_upload_bytes()
    if size > limit:
        raise InvalidInput("file", f"The uploaded file exceeds the {limit // (1024 * 1024)} MB limit.")


def import_file(workspace: Workspace, data: bytes, filename: str) -> ImportResult:
    """
    Parse, classify and stage one statement file.

    Parse problems come back in `ImportResult.errors`; only storage errors
    raise. New lines start selected, duplicates start unselected.
    """
    validate_upload(filename, len(data or b""))

    parsed = parse_statement(data, filename)
    result = ImportResult(errors=list(parsed.errors))
    if not parsed.transactions:
        logger.info(
            "Import of %s for workspace %s produced no transactions (%d errors)",
            filename,
            workspace.key,
            len(parsed.errors),
        )
        return result

    with transaction.atomic():
        Workspace.objects.select_for_update().get(pk=workspace.pk)
        classified = classify_batch(workspace, parsed.transactions)
        now = timezone.now()
        ImportReviewTransaction.objects.bulk_create(
            [
                ImportReviewTransaction(
                    workspace=workspace,
                    date=record.parsed.date,
                    amount=record.parsed.amount,
                    payee=record.parsed.payee,
                    memo=record.parsed.memo,
                    source=record.parsed.source,
                    external_id=record.parsed.external_id,
                    duplicate_status=record.status,
                    duplicate_of_key=record.duplicate_of_key,
                    is_selected=record.status == DuplicateStatus.NEW,
                    created_at=now,
                )
                for record in classified.records
            ]
        )

    result.imported_count = classified.imported_count
    result.new_count = classified.new_count
    result.exact_duplicate_count = classified.exact_duplicate_count
    result.potential_duplicate_count = classified.potential_duplicate_count
    return result


# ─────────────────────────────────────────────────────────────────────────────
#    Review queue
# ─────────────────────────────────────────────────────────────────────────────

DEFAULT_SORT = "date"

SORT_ORDERINGS = {
    "date": ("-date", "payee", "-id"),
    "-date": ("-date", "payee", "-id"),
    "date_asc": ("date", "payee", "id"),
    "payee": ("payee", "-date", "-id"),
    "-payee": ("-payee", "-date", "-id"),
    "amount": ("amount", "-date", "-id"),
    "-amount": ("-amount", "-date", "-id"),
    "status": ("duplicate_status", "-date", "payee", "-id"),
}


def pending_queryset(workspace: Workspace):
    return ImportReviewTransaction.objects.filter(workspace=workspace)


@dataclass(frozen=True)
class ReviewItem:
    key: UUID
    date: date
    payee: str
    category: str
    amount: Decimal
    duplicate_status: str
    duplicate_of_key: Optional[UUID]
    is_selected: bool


@dataclass
class ReviewPage:
    items: List[ReviewItem]
    metadata: PageMetadata


def _with_category(rows: Iterable[ImportReviewTransaction], rules) -> List[ReviewItem]:
    return [
        ReviewItem(
            key=row.key,
            date=row.date,
            payee=row.payee,
            category=find_best_match(row.payee, rules) or "",
            amount=row.amount,
            duplicate_status=row.duplicate_status,
            duplicate_of_key=row.duplicate_of_key,
            is_selected=row.is_selected,
        )
        for row in rows
    ]


def _payees_in_category(workspace: Workspace, rules, search_text: str) -> List[str]:
    """Payees in the queue whose suggested category contains `search_text`."""
    needle = search_text.casefold()
    if not any(needle in (rule.category or "").casefold() for rule in rules):
        return []
    payees = pending_queryset(workspace).values_list("payee", flat=True).distinct()
    return [p for p in payees if needle in (find_best_match(p, rules) or "").casefold()]


def get_pending_review(
    workspace: Workspace,
    page_number=None,
    page_size=None,
    sort_by: Optional[str] = None,
    search_text: Optional[str] = None,
) -> ReviewPage:
    page_number, page_size = normalize_page(page_number, page_size)
    ordering = SORT_ORDERINGS.get((sort_by or "").strip() or DEFAULT_SORT, SORT_ORDERINGS[DEFAULT_SORT])
    rules = rules_for_workspace(workspace)

    qs = pending_queryset(workspace)
    search_text = (search_text or "").strip()
    if search_text:
        match = Q(payee__icontains=search_text) | Q(memo__icontains=search_text)
        category_payees = _payees_in_category(workspace, rules, search_text)
        if category_payees:
            match |= Q(payee__in=category_payees)
        qs = qs.filter(match)

    rows, metadata = paginate(qs.order_by(*ordering), page_number, page_size)
    return ReviewPage(items=_with_category(rows, rules), metadata=metadata)


def get_summary(workspace: Workspace) -> dict:
    totals = pending_queryset(workspace).aggregate(
        total=Count("id"),
        selected=Count("id", filter=Q(is_selected=True)),
        new=Count("id", filter=Q(duplicate_status=DuplicateStatus.NEW)),
        exact=Count("id", filter=Q(duplicate_status=DuplicateStatus.EXACT_DUPLICATE)),
        potential=Count("id", filter=Q(duplicate_status=DuplicateStatus.POTENTIAL_DUPLICATE)),
    )
    return {
        "TotalCount": totals["total"],
        "SelectedCount": totals["selected"],
        "NewCount": totals["new"],
        "ExactDuplicateCount": totals["exact"],
        "PotentialDuplicateCount": totals["potential"],
    }


def set_selection(workspace: Workspace, keys: Sequence[UUID], is_selected: bool) -> int:
    """Update `is_selected` for the given keys; unknown keys are ignored."""
    return pending_queryset(workspace).filter(key__in=list(keys)).update(is_selected=is_selected)


def select_all(workspace: Workspace) -> int:
    return pending_queryset(workspace).update(is_selected=True)


def deselect_all(workspace: Workspace) -> int:
    return pending_queryset(workspace).update(is_selected=False)


def delete_all(workspace: Workspace) -> int:
    """Discard the whole queue. Safe to call on an empty queue."""
    deleted, _ = pending_queryset(workspace).delete()
    return deleted


# ─────────────────────────────────────────────────────────────────────────────
#    Completion
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CompletionResult:
    accepted_count: int
    rejected_count: int

    def as_dict(self) -> dict:
        return {"AcceptedCount": self.accepted_count, "RejectedCount": self.rejected_count}


def complete_review(workspace: Workspace, keys: Optional[Sequence[UUID]]) -> CompletionResult:
    """
    Accept the staged rows named in `keys` into the ledger and drop the rest.

    The whole queue as it stood when the lock was taken is resolved: nothing
    staged before the call survives it. Keys that are not staged for this
    workspace are ignored.
    """
    if not keys:
        raise InvalidInput("keys", "At least one transaction key is required.")

    wanted = set(keys)
    with transaction.atomic():
        Workspace.objects.select_for_update().get(pk=workspace.pk)
        staged = list(pending_queryset(workspace).order_by("created_at", "id"))
        accepted = [row for row in staged if row.key in wanted]

        rules = rules_for_workspace(workspace)
        used_rules = []
        ledger_rows = []
        for row in accepted:
            rule = find_best_rule(row.payee, rules)
            if rule is not None:
                used_rules.append(rule)
            ledger_rows.append(
                Transaction(
                    workspace=workspace,
                    date=row.date,
                    amount=row.amount,
                    payee=row.payee,
                    memo=row.memo,
                    source=row.source,
                    external_id=row.external_id,
                    category=rule.category if rule else "",
                )
            )
        Transaction.objects.bulk_create(ledger_rows)
        record_rule_usage(used_rules)

        ImportReviewTransaction.objects.filter(pk__in=[row.pk for row in staged]).delete()

    result = CompletionResult(accepted_count=len(accepted), rejected_count=len(staged) - len(accepted))
    logger.info(
        "Completed import review for workspace %s: accepted=%d rejected=%d",
        workspace.key,
        result.accepted_count,
        result.rejected_count,
    )
    return result


# ─────────────────────────────────────────────────────────────────────────────
#    Maintenance
# ─────────────────────────────────────────────────────────────────────────────


def seed_review_queue(workspace: Workspace, count: int, selected_count: int = 0) -> List[ImportReviewTransaction]:
    """Stage `count` deterministic New rows, the first `selected_count` of them selected."""
    if count < 0:
        raise ValueError("count must not be negative")
    if selected_count < 0 or selected_count > count:
        raise ValueError("selected count must be between 0 and count")

    base = timezone.localdate()
    now = timezone.now()
    rows = [
        ImportReviewTransaction(
            workspace=workspace,
            date=base - timedelta(days=i),
            amount=(Decimal(-(i + 1) * 125) / Decimal(100)).quantize(Decimal("0.01")),
            payee=f"Test Payee {i + 1:04d}",
            memo=f"Seeded review row {i + 1}",
            source="Seed",
            external_id=f"SEED-{i + 1:06d}",
            duplicate_status=DuplicateStatus.NEW,
            is_selected=i < selected_count,
            created_at=now,
        )
        for i in range(count)
    ]
    return ImportReviewTransaction.objects.bulk_create(rows)


def purge_stale(older_than: timedelta) -> int:
    """Delete staged rows created before now - older_than, across workspaces."""
    cutoff = timezone.now() - older_than
    deleted, _ = ImportReviewTransaction.objects.filter(created_at__lt=cutoff).delete()
    return deleted
