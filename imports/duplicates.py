"""
Duplicate classification for freshly parsed bank lines.

Each parsed line is compared against the workspace's committed ledger and,
when the ledger has nothing to say, against lines already waiting for review:

- Tier 1 (external id): candidates sharing the line's external id.
  Same amount and date -> ExactDuplicate (earliest-created candidate).
  Otherwise -> PotentialDuplicate (candidate closest by date).
- Tier 2 (no external id): candidates with the same amount and date
  -> PotentialDuplicate, preferring an equal payee.
- Nothing found -> New.

External ids are not unique in the ledger, so candidates are always kept in
a one-to-many map.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from core.models import Transaction, Workspace

from .models import DuplicateStatus, ImportReviewTransaction
from .parsing import ParsedTransaction

logger = logging.getLogger(__name__)

# Keeps IN (...) lists under every backend's bound-parameter limit.
LOOKUP_CHUNK_SIZE = 500


@dataclass(frozen=True)
class Candidate:
    key: UUID
    date: date
    amount: Decimal
    payee: str
    external_id: Optional[str]
    created_at: object
    pk: int

    @property
    def created_order(self):
        return (self.created_at, self.pk)


@dataclass(frozen=True)
class ClassifiedTransaction:
    parsed: ParsedTransaction
    status: str
    duplicate_of_key: Optional[UUID] = None


@dataclass
class ClassificationResult:
    records: List[ClassifiedTransaction] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for r in self.records if r.status == status)

    @property
    def imported_count(self) -> int:
        return len(self.records)

    @property
    def new_count(self) -> int:
        return self._count(DuplicateStatus.NEW)

    @property
    def exact_duplicate_count(self) -> int:
        return self._count(DuplicateStatus.EXACT_DUPLICATE)

    @property
    def potential_duplicate_count(self) -> int:
        return self._count(DuplicateStatus.POTENTIAL_DUPLICATE)


_CANDIDATE_FIELDS = ("pk", "key", "date", "amount", "payee", "external_id", "created_at")


def _chunks(values: Sequence, size: int = LOOKUP_CHUNK_SIZE):
    for start in range(0, len(values), size):
        yield values[start:start + size]


def _as_candidates(queryset) -> List[Candidate]:
    return [Candidate(**row) for row in queryset.values(*_CANDIDATE_FIELDS)]


def _by_external_id(model, workspace: Workspace, external_ids: Iterable[str]) -> Dict[str, List[Candidate]]:
    index: Dict[str, List[Candidate]] = defaultdict(list)
    ids = sorted(set(external_ids))
    for chunk in _chunks(ids):
        for candidate in _as_candidates(model.objects.filter(workspace=workspace, external_id__in=chunk)):
            index[candidate.external_id].append(candidate)
    return index


def _by_date_and_amount(model, workspace: Workspace, lines: Sequence[ParsedTransaction]) -> Dict[Tuple[date, Decimal], List[Candidate]]:
    index: Dict[Tuple[date, Decimal], List[Candidate]] = defaultdict(list)
    wanted = {(line.date, line.amount) for line in lines}
    dates = sorted({d for d, _ in wanted})
    for chunk in _chunks(dates):
        for candidate in _as_candidates(model.objects.filter(workspace=workspace, date__in=chunk)):
            pair = (candidate.date, candidate.amount)
            if pair in wanted:
                index[pair].append(candidate)
    return index


def _match_by_external_id(line: ParsedTransaction, candidates: List[Candidate]) -> ClassifiedTransaction:
    exact = [c for c in candidates if c.amount == line.amount and c.date == line.date]
    if exact:
        winner = min(exact, key=lambda c: c.created_order)
        return ClassifiedTransaction(line, DuplicateStatus.EXACT_DUPLICATE, winner.key)

    closest = min(candidates, key=lambda c: (abs((c.date - line.date).days), c.created_order))
    return ClassifiedTransaction(line, DuplicateStatus.POTENTIAL_DUPLICATE, closest.key)


def _match_by_amount_and_date(line: ParsedTransaction, candidates: List[Candidate]) -> ClassifiedTransaction:
    payee = (line.payee or "").strip().casefold()
    best = min(
        candidates,
        key=lambda c: ((c.payee or "").strip().casefold() != payee, c.created_order),
    )
    return ClassifiedTransaction(line, DuplicateStatus.POTENTIAL_DUPLICATE, best.key)


def classify_batch(workspace: Workspace, lines: Sequence[ParsedTransaction]) -> ClassificationResult:
    """
    Classify `lines` against the workspace's ledger, then its pending review
    queue. Output order matches input order. Database errors propagate.
    """
    with_id = [line for line in lines if line.external_id]
    without_id = [line for line in lines if not line.external_id]

    external_ids = [line.external_id for line in with_id]
    ledger_by_id = _by_external_id(Transaction, workspace, external_ids)
    staged_by_id = _by_external_id(ImportReviewTransaction, workspace, external_ids)

    ledger_by_pair = _by_date_and_amount(Transaction, workspace, without_id) if without_id else {}
    staged_by_pair = _by_date_and_amount(ImportReviewTransaction, workspace, without_id) if without_id else {}

    result = ClassificationResult()
    for line in lines:
        if line.external_id:
            candidates = ledger_by_id.get(line.external_id) or staged_by_id.get(line.external_id)
            if candidates:
                result.records.append(_match_by_external_id(line, candidates))
                continue
        else:
            pair = (line.date, line.amount)
            candidates = ledger_by_pair.get(pair) or staged_by_pair.get(pair)
            if candidates:
                result.records.append(_match_by_amount_and_date(line, candidates))
                continue
        result.records.append(ClassifiedTransaction(line, DuplicateStatus.NEW))

    logger.debug(
        "Classified %d lines for workspace %s: new=%d exact=%d potential=%d",
        result.imported_count,
        workspace.key,
        result.new_count,
        result.exact_duplicate_count,
        result.potential_duplicate_count,
    )
    return result
