import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


class DuplicateStatus(models.TextChoices):
    NEW = "New", "New"
    EXACT_DUPLICATE = "ExactDuplicate", "Exact duplicate"
    POTENTIAL_DUPLICATE = "PotentialDuplicate", "Potential duplicate"


class ImportReviewTransaction(models.Model):
    """
    One parsed bank line waiting for the user to accept or reject it.

    Rows are transient: they are created in bulk by an upload and deleted by
    completing the review or discarding the queue. Only `is_selected` is
    ever updated in place, and it is advisory; completion takes an explicit
    list of keys.
    """

    key = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    workspace = models.ForeignKey(
        "core.Workspace",
        on_delete=models.CASCADE,
        related_name="import_review_transactions",
    )
    date = models.DateField(db_index=True)
    amount = models.DecimalField(
        max_digits=19,
        decimal_places=2,
        default=Decimal("0.00"),
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
    duplicate_status = models.CharField(
        max_length=20,
        choices=DuplicateStatus.choices,
        default=DuplicateStatus.NEW,
        db_index=True,
    )
    duplicate_of_key = models.UUIDField(
        null=True,
        blank=True,
        help_text="Key of the ledger transaction (or earlier staged row) this one duplicates.",
    )
    is_selected = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-date", "payee", "-id"]
        indexes = [
            models.Index(fields=["workspace", "external_id"], name="imports_irt_ws_extid_idx"),
            models.Index(fields=["workspace", "date", "amount"], name="imports_irt_ws_date_amt_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(duplicate_status=DuplicateStatus.NEW, duplicate_of_key__isnull=True)
                    | (~Q(duplicate_status=DuplicateStatus.NEW) & Q(duplicate_of_key__isnull=False))
                ),
                name="irt_duplicate_of_key_iff_duplicate",
            ),
        ]

    def __str__(self):
        return f"{self.date} – {self.payee} ({self.duplicate_status})"

    def clean(self):
        super().clean()
        is_new = self.duplicate_status == DuplicateStatus.NEW
        if is_new and self.duplicate_of_key is not None:
            raise ValidationError({"duplicate_of_key": "New transactions cannot reference a duplicate."})
        if not is_new and self.duplicate_of_key is None:
            raise ValidationError({"duplicate_of_key": "Duplicates must reference the matched transaction."})
