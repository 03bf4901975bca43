from decimal import Decimal
import uuid

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ImportReviewTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("date", models.DateField(db_index=True)),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=19)),
                ("payee", models.CharField(max_length=200)),
                ("memo", models.CharField(blank=True, default="", max_length=1000)),
                ("source", models.CharField(blank=True, default="", max_length=200)),
                ("external_id", models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ("duplicate_status", models.CharField(choices=[("New", "New"), ("ExactDuplicate", "Exact duplicate"), ("PotentialDuplicate", "Potential duplicate")], db_index=True, default="New", max_length=20)),
                ("duplicate_of_key", models.UUIDField(blank=True, help_text="Key of the ledger transaction (or earlier staged row) this one duplicates.", null=True)),
                ("is_selected", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("workspace", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="import_review_transactions", to="core.workspace")),
            ],
            options={
                "ordering": ["-date", "payee", "-id"],
                "indexes": [
                    models.Index(fields=["workspace", "external_id"], name="imports_irt_ws_extid_idx"),
                    models.Index(fields=["workspace", "date", "amount"], name="imports_irt_ws_date_amt_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(("duplicate_status", "New"), ("duplicate_of_key__isnull", True))
                            | models.Q(
                                models.Q(("duplicate_status", "New"), _negated=True),
                                ("duplicate_of_key__isnull", False),
                            )
                        ),
                        name="irt_duplicate_of_key_iff_duplicate",
                    ),
                ],
            },
        ),
    ]
