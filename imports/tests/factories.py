"""Shared fixtures for import tests: OFX documents, workspaces and members."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from django.contrib.auth import get_user_model

from core.models import Transaction, Workspace, WorkspaceMembership

User = get_user_model()

_OFX_HEADER = (
    "OFXHEADER:100\n"
    "DATA:OFXSGML\n"
    "VERSION:102\n"
    "SECURITY:NONE\n"
    "ENCODING:USASCII\n"
    "CHARSET:1252\n"
    "COMPRESSION:NONE\n"
    "OLDFILEUID:NONE\n"
    "NEWFILEUID:NONE\n"
    "\n"
)


def ofx_transaction(
    posted: date,
    amount,
    name: Optional[str] = None,
    memo: Optional[str] = None,
    fitid: Optional[str] = None,
) -> dict:
    return {"posted": posted, "amount": Decimal(str(amount)), "name": name, "memo": memo, "fitid": fitid}


def build_ofx(
    transactions: Iterable[dict],
    bank: str = "Test Bank",
    account_id: str = "000123",
    account_type: str = "CHECKING",
) -> bytes:
    lines = []
    for tx in transactions:
        parts = [
            "<STMTTRN>",
            "<TRNTYPE>DEBIT</TRNTYPE>" if tx["amount"] < 0 else "<TRNTYPE>CREDIT</TRNTYPE>",
            f"<DTPOSTED>{tx['posted']:%Y%m%d}120000</DTPOSTED>",
            f"<TRNAMT>{tx['amount']:.2f}</TRNAMT>",
        ]
        if tx.get("fitid"):
            parts.append(f"<FITID>{tx['fitid']}</FITID>")
        if tx.get("name") is not None:
            parts.append(f"<NAME>{tx['name']}</NAME>")
        if tx.get("memo") is not None:
            parts.append(f"<MEMO>{tx['memo']}</MEMO>")
        parts.append("</STMTTRN>")
        lines.append("".join(parts))

    body = (
        "<OFX>"
        "<SIGNONMSGSRSV1><SONRS>"
        "<STATUS><CODE>0</CODE><SEVERITY>INFO</SEVERITY></STATUS>"
        "<DTSERVER>20240201120000</DTSERVER><LANGUAGE>ENG</LANGUAGE>"
        f"<FI><ORG>{bank}</ORG><FID>1001</FID></FI>"
        "</SONRS></SIGNONMSGSRSV1>"
        "<BANKMSGSRSV1><STMTTRNRS><TRNUID>1</TRNUID>"
        "<STATUS><CODE>0</CODE><SEVERITY>INFO</SEVERITY></STATUS>"
        "<STMTRS><CURDEF>USD</CURDEF>"
        f"<BANKACCTFROM><BANKID>111000025</BANKID><ACCTID>{account_id}</ACCTID>"
        f"<ACCTTYPE>{account_type}</ACCTTYPE></BANKACCTFROM>"
        "<BANKTRANLIST><DTSTART>20240101</DTSTART><DTEND>20240131</DTEND>\n"
        + "\n".join(lines)
        + "\n</BANKTRANLIST>"
        "<LEDGERBAL><BALAMT>1000.00</BALAMT><DTASOF>20240131</DTASOF></LEDGERBAL>"
        "</STMTRS></STMTTRNRS></BANKMSGSRSV1>"
        "</OFX>\n"
    )
    return (_OFX_HEADER + body).encode("ascii")


def sample_statement(count: int = 10, start_day: int = 1, fitid_prefix: str = "FIT") -> bytes:
    """`count` distinct transactions in January 2024 with FITIDs."""
    return build_ofx(
        ofx_transaction(
            date(2024, 1, start_day + (i % 28)),
            Decimal(-(i + 1) * 3) - Decimal("0.25"),
            name=f"Merchant {i + 1}",
            memo=f"Purchase {i + 1}",
            fitid=f"{fitid_prefix}{i + 1:04d}",
        )
        for i in range(count)
    )


def make_member(workspace: Workspace, username: str, role=WorkspaceMembership.Role.EDITOR):
    user = User.objects.create_user(username=username, password="pass")
    WorkspaceMembership.objects.create(workspace=workspace, user=user, role=role)
    return user


def make_ledger_transaction(workspace: Workspace, **fields) -> Transaction:
    defaults = {
        "date": date(2024, 1, 5),
        "amount": Decimal("-12.50"),
        "payee": "Coffee Shop",
        "memo": "",
        "source": "Test Bank - Checking (000123)",
        "external_id": None,
    }
    defaults.update(fields)
    return Transaction.objects.create(workspace=workspace, **defaults)
