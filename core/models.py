import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.utils import timezone

if TYPE_CHECKING:
    from django.db.models import Manager


class Workspace(models.Model):
    """
    A tenant. Every ledger row, staged import row and payee rule belongs to
    exactly one workspace; the public `key` is what appears in API paths.
    """

    key = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    name = models.CharField(max_length=255)
    description = models.CharField(max_length=1000, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name", "id"]

    def __str__(self):
        return self.name

    if TYPE_CHECKING:
        id: int
        memberships: Manager["WorkspaceMembership"]
        transactions: Manager["Transaction"]


class WorkspaceMembership(models.Model):
    class Role(models.TextChoices):
        VIEWER = "VIEWER", "Viewer"
        EDITOR = "EDITOR", "Editor"
        OWNER = "OWNER", "Owner"

    workspace = models.ForeignKey(
        Workspace,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="workspace_memberships",
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.VIEWER,
        db_index=True,
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["workspace", "user"],
                name="uniq_membership_per_workspace_user",
            ),
        ]

    def __str__(self):
        return f"{self.user} @ {self.workspace} ({self.role})"


class Transaction(models.Model):
    """
    A committed ledger transaction.

    `external_id` is whatever the bank supplied (OFX FITID or a content hash).
    It is deliberately not unique: reversals and corrections can legitimately
    reuse one.
    """

    key = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    workspace = models.ForeignKey(
        Workspace,
        on_delete=models.CASCADE,
        related_name="transactions",
    )
    date = models.DateField(db_index=True)
    amount = models.DecimalField(
        max_digits=19,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Positive = deposit, negative = withdrawal",
    )
    payee = models.CharField(max_length=200)
    memo = models.CharField(max_length=1000, blank=True, default="")
    source = models.CharField(max_length=200, blank=True, default="")
    external_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        db_index=True,
    )
    category = models.CharField(max_length=200, blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["workspace", "external_id"], name="core_txn_ws_extid_idx"),
            models.Index(fields=["workspace", "date", "amount"], name="core_txn_ws_date_amt_idx"),
        ]

    def __str__(self):
        return f"{self.date} – {self.payee}"


class PayeeMatchingRule(models.Model):
    """Maps a payee pattern (substring or regex) to a category."""

    key = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    workspace = models.ForeignKey(
        Workspace,
        on_delete=models.CASCADE,
        related_name="payee_rules",
    )
    payee_pattern = models.CharField(max_length=200)
    payee_is_regex = models.BooleanField(default=False)
    category = models.CharField(max_length=200)
    created_at = models.DateTimeField(default=timezone.now)
    modified_at = models.DateTimeField(default=timezone.now, db_index=True)
    last_used_at = models.DateTimeField(null=True, blank=True)
    match_count = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["-modified_at", "-id"]

    def __str__(self):
        kind = "regex" if self.payee_is_regex else "contains"
        return f"{kind} '{self.payee_pattern}' → {self.category}"
