"""
Bank statement parsing.

`parse_statement()` turns an uploaded file into a list of `ParsedTransaction`
plus a list of `ParseError`. It never raises for bad content: a corrupted or
unreadable file comes back as zero transactions and at least one error.

Supported formats:
- OFX / QFX, via ofxparse.
- CSV with a header row: Date, Description (or Payee), and either Amount or
  Debit/Credit. Optional Memo and Id/FITID columns.
"""
from __future__ import annotations

import csv
import hashlib
import io
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from ofxparse import OfxParser

logger = logging.getLogger(__name__)

OFX_EXTENSIONS = {".ofx", ".qfx"}
CSV_EXTENSIONS = {".csv"}

PAYEE_MAX_LENGTH = 200
MEMO_MAX_LENGTH = 1000
SOURCE_MAX_LENGTH = 200
EXTERNAL_ID_MAX_LENGTH = 100

CENT = Decimal("0.01")
# 19 digits with 2 decimal places leaves 17 for the integer part.
MAX_ABS_AMOUNT = Decimal("1e17")


@dataclass(frozen=True)
class ParsedTransaction:
    date: date
    amount: Decimal
    payee: str
    memo: str = ""
    source: str = ""
    external_id: Optional[str] = None


@dataclass(frozen=True)
class ParseError:
    message: str
    code: Optional[str] = None
    file_name: Optional[str] = None

    def as_dict(self) -> dict:
        return {"Message": self.message, "Code": self.code, "FileName": self.file_name}


@dataclass
class ParseResult:
    transactions: list[ParsedTransaction] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def transaction_hash(when: date, amount: Decimal, payee: str, memo: str, source: str) -> str:
    """Stable identifier for lines the bank sent without one."""
    raw = f"{when.isoformat()}|{amount:.2f}|{payee}|{memo}|{source}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest().upper()


def _clip(value: Optional[str], limit: int) -> str:
    return (value or "").strip()[:limit]


def _checked_amount(amount: Decimal, raw) -> Decimal:
    if not amount.is_finite() or abs(amount) >= MAX_ABS_AMOUNT:
        raise ValueError(f"invalid amount '{raw}'")
    return amount.quantize(CENT)


def _to_cents(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"invalid amount '{value}'")
    return _checked_amount(amount, value)


def parse_statement(data: bytes, filename: str) -> ParseResult:
    ext = file_extension(filename)
    if not data:
        return ParseResult()
    if ext in CSV_EXTENSIONS:
        return parse_csv(data, filename)
    return parse_ofx(data, filename)


# ─────────────────────────────────────────────────────────────────────────────
#    OFX / QFX
# ─────────────────────────────────────────────────────────────────────────────


def _ofx_source(ofx, account) -> str:
    parts = []

    institution = getattr(account, "institution", None)
    bank_name = getattr(institution, "organization", None)
    if not bank_name:
        signon = getattr(ofx, "signon", None)
        bank_name = getattr(signon, "fi_org", None)
    if bank_name and str(bank_name).strip():
        parts.append(str(bank_name).strip())

    account_type = (getattr(account, "account_type", "") or "").strip().capitalize()
    account_id = (getattr(account, "account_id", "") or "").strip()
    if account_id:
        parts.append(f"{account_type} ({account_id})" if account_type else f"({account_id})")
    elif account_type:
        parts.append(account_type)

    return " - ".join(parts)


def _split_payee_and_memo(name: Optional[str], memo: Optional[str]) -> tuple[str, str]:
    """
    NAME is the payee and MEMO the memo, except when NAME is blank or was
    truncated by the bank (MEMO starts with NAME): then MEMO is the payee.
    """
    name = (name or "").strip()
    memo = (memo or "").strip()
    if not name or (memo and memo.lower().startswith(name.lower())):
        return memo, ""
    return name, memo


def parse_ofx(data: bytes, filename: str) -> ParseResult:
    result = ParseResult()
    try:
        ofx = OfxParser.parse(io.BytesIO(data), fail_fast=False)
    except Exception as exc:
        logger.info("OFX parse failed for %s: %s", filename, exc)
        result.errors.append(
            ParseError(
                message=f"Failed to parse OFX document: {exc}",
                code="ofx_invalid",
                file_name=filename,
            )
        )
        return result

    accounts = list(getattr(ofx, "accounts", None) or [])
    if not accounts:
        result.errors.append(
            ParseError(
                message="No statements were found in the file.",
                code="ofx_no_statements",
                file_name=filename,
            )
        )
        return result

    for account in accounts:
        statement = getattr(account, "statement", None)
        if statement is None:
            continue
        source = _clip(_ofx_source(ofx, account), SOURCE_MAX_LENGTH)

        for entry in getattr(statement, "discarded_entries", None) or []:
            result.errors.append(
                ParseError(
                    message=f"Transaction could not be read: {entry.get('error', 'unknown error')}",
                    code="ofx_bad_transaction",
                    file_name=filename,
                )
            )

        for tx in getattr(statement, "transactions", None) or []:
            try:
                posted = tx.date.date() if isinstance(tx.date, datetime) else tx.date
                amount = _to_cents(tx.amount)
            except (AttributeError, TypeError, ValueError, InvalidOperation) as exc:
                result.errors.append(
                    ParseError(
                        message=f"Transaction {getattr(tx, 'id', None) or '?'} could not be read: {exc}",
                        code="ofx_bad_transaction",
                        file_name=filename,
                    )
                )
                continue

            payee, memo = _split_payee_and_memo(getattr(tx, "payee", None), getattr(tx, "memo", None))
            if not payee:
                result.errors.append(
                    ParseError(
                        message=(
                            f"Transaction on {posted:%Y-%m-%d} has no payee name "
                            "(NAME and MEMO fields both missing or empty)"
                        ),
                        code="ofx_missing_payee",
                        file_name=filename,
                    )
                )
                continue

            payee = _clip(payee, PAYEE_MAX_LENGTH)
            memo = _clip(memo, MEMO_MAX_LENGTH)
            fitid = (getattr(tx, "id", None) or "").strip()
            external_id = fitid or transaction_hash(posted, amount, payee, memo, source)

            result.transactions.append(
                ParsedTransaction(
                    date=posted,
                    amount=amount,
                    payee=payee,
                    memo=memo,
                    source=source,
                    external_id=external_id[:EXTERNAL_ID_MAX_LENGTH],
                )
            )

    return result


# ─────────────────────────────────────────────────────────────────────────────
#    CSV
# ─────────────────────────────────────────────────────────────────────────────

CSV_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")

_DATE_COLUMNS = ("date", "posted", "posting date", "transaction date")
_PAYEE_COLUMNS = ("description", "payee", "name")
_AMOUNT_COLUMNS = ("amount",)
_DEBIT_COLUMNS = ("debit", "withdrawal")
_CREDIT_COLUMNS = ("credit", "deposit")
_MEMO_COLUMNS = ("memo", "notes")
_ID_COLUMNS = ("id", "fitid", "transaction id", "reference")


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def _find_column(fieldnames: dict[str, str], candidates) -> Optional[str]:
    for candidate in candidates:
        if candidate in fieldnames:
            return fieldnames[candidate]
    return None


def _parse_csv_date(raw: str) -> date:
    for fmt in CSV_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date '{raw}'")


def _parse_money(raw: Optional[str]) -> Decimal:
    raw = (raw or "").strip()
    cleaned = raw.replace(",", "").replace("$", "")
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = "-" + cleaned[1:-1]
    if not cleaned:
        return Decimal("0")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"invalid amount '{raw}'")
    return _checked_amount(amount, raw)


def parse_csv(data: bytes, filename: str) -> ParseResult:
    result = ParseResult()
    reader = csv.DictReader(io.StringIO(_decode(data)))

    try:
        header = reader.fieldnames or []
    except csv.Error as exc:
        result.errors.append(ParseError(message=f"Failed to read CSV header: {exc}", code="csv_invalid", file_name=filename))
        return result

    columns = {(name or "").strip().lower(): name for name in header}
    date_col = _find_column(columns, _DATE_COLUMNS)
    payee_col = _find_column(columns, _PAYEE_COLUMNS)
    amount_col = _find_column(columns, _AMOUNT_COLUMNS)
    debit_col = _find_column(columns, _DEBIT_COLUMNS)
    credit_col = _find_column(columns, _CREDIT_COLUMNS)
    memo_col = _find_column(columns, _MEMO_COLUMNS)
    id_col = _find_column(columns, _ID_COLUMNS)

    if not date_col or not payee_col or not (amount_col or debit_col or credit_col):
        result.errors.append(
            ParseError(
                message="CSV header must include Date, Description (or Payee), and Amount or Debit/Credit columns.",
                code="csv_missing_columns",
                file_name=filename,
            )
        )
        return result

    source = f"CSV ({os.path.basename(filename)})"[:SOURCE_MAX_LENGTH]

    try:
        for line_no, row in enumerate(reader, start=2):
            date_raw = (row.get(date_col) or "").strip()
            payee = _clip(row.get(payee_col), PAYEE_MAX_LENGTH)
            if not date_raw and not payee:
                continue  # blank line
            try:
                posted = _parse_csv_date(date_raw)
                if amount_col:
                    amount = _parse_money(row.get(amount_col))
                else:
                    credit, debit = row.get(credit_col), row.get(debit_col)
                    amount = _checked_amount(_parse_money(credit) - _parse_money(debit), f"{credit or ''}/{debit or ''}")
            except ValueError as exc:
                result.errors.append(
                    ParseError(message=f"Row {line_no}: {exc}", code="csv_bad_row", file_name=filename)
                )
                continue

            if not payee:
                result.errors.append(
                    ParseError(
                        message=f"Row {line_no}: transaction on {posted:%Y-%m-%d} has no payee name",
                        code="csv_missing_payee",
                        file_name=filename,
                    )
                )
                continue

            external_id = _clip(row.get(id_col), EXTERNAL_ID_MAX_LENGTH) if id_col else ""
            result.transactions.append(
                ParsedTransaction(
                    date=posted,
                    amount=amount,
                    payee=payee,
                    memo=_clip(row.get(memo_col), MEMO_MAX_LENGTH) if memo_col else "",
                    source=source,
                    external_id=external_id or None,
                )
            )
    except csv.Error as exc:
        result.errors.append(ParseError(message=f"CSV read error: {exc}", code="csv_invalid", file_name=filename))

    return result
