from decimal import Decimal
import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Workspace",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.CharField(blank=True, default="", max_length=1000)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name", "id"],
            },
        ),
        migrations.CreateModel(
            name="WorkspaceMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("VIEWER", "Viewer"), ("EDITOR", "Editor"), ("OWNER", "Owner")], db_index=True, default="VIEWER", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="workspace_memberships", to=settings.AUTH_USER_MODEL)),
                ("workspace", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="core.workspace")),
            ],
        ),
        migrations.AddConstraint(
            model_name="workspacemembership",
            constraint=models.UniqueConstraint(fields=("workspace", "user"), name="uniq_membership_per_workspace_user"),
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("date", models.DateField(db_index=True)),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Positive = deposit, negative = withdrawal", max_digits=19)),
                ("payee", models.CharField(max_length=200)),
                ("memo", models.CharField(blank=True, default="", max_length=1000)),
                ("source", models.CharField(blank=True, default="", max_length=200)),
                ("external_id", models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ("category", models.CharField(blank=True, default="", max_length=200)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("workspace", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="transactions", to="core.workspace")),
            ],
            options={
                "ordering": ["-date", "-id"],
            },
        ),
        migrations.AddIndex(
            model_name="transaction",
            index=models.Index(fields=["workspace", "external_id"], name="core_txn_ws_extid_idx"),
        ),
        migrations.AddIndex(
            model_name="transaction",
            index=models.Index(fields=["workspace", "date", "amount"], name="core_txn_ws_date_amt_idx"),
        ),
        migrations.CreateModel(
            name="PayeeMatchingRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("payee_pattern", models.CharField(max_length=200)),
                ("payee_is_regex", models.BooleanField(default=False)),
                ("category", models.CharField(max_length=200)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("modified_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("last_used_at", models.DateTimeField(blank=True, null=True)),
                ("match_count", models.PositiveIntegerField(default=0)),
                ("workspace", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payee_rules", to="core.workspace")),
            ],
            options={
                "ordering": ["-modified_at", "-id"],
            },
        ),
    ]
