import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("branches", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="BranchPlan",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("quarter", models.CharField(help_text='Format "Q1 2024".', max_length=7, verbose_name="quarter")),
                (
                    "savings_target",
                    models.DecimalField(decimal_places=2, max_digits=14, verbose_name="savings target"),
                ),
                (
                    "branch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="plans",
                        to="branches.branch",
                        verbose_name="branch",
                    ),
                ),
            ],
            options={
                "verbose_name": "Branch plan",
                "verbose_name_plural": "Branch plans",
                "ordering": ["branch__name", "quarter"],
                "constraints": [
                    models.UniqueConstraint(fields=("branch", "quarter"), name="uniq_branch_plan_quarter"),
                    models.CheckConstraint(
                        condition=models.Q(savings_target__gte=0),
                        name="branch_plan_target_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PlanEntry",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("date", models.DateField(verbose_name="date")),
                (
                    "entry_type",
                    models.CharField(
                        choices=[("collection", "Collection"), ("withdrawal", "Withdrawal")],
                        max_length=20,
                        verbose_name="type",
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14, verbose_name="amount")),
                ("description", models.TextField(verbose_name="description")),
                (
                    "status",
                    models.CharField(
                        choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")],
                        db_index=True,
                        default="PENDING",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("submitted_by", models.CharField(max_length=255, verbose_name="submitted by")),
                ("reviewed_by", models.CharField(blank=True, default="", max_length=255, verbose_name="reviewed by")),
                ("reviewed_at", models.DateTimeField(blank=True, null=True, verbose_name="reviewed at")),
                ("rejection_reason", models.TextField(blank=True, default="", verbose_name="rejection reason")),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="entries",
                        to="plans.branchplan",
                        verbose_name="plan",
                    ),
                ),
            ],
            options={
                "verbose_name": "Plan entry",
                "verbose_name_plural": "Plan entries",
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["plan", "status"], name="plan_entry_plan_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(amount__gt=0), name="plan_entry_amount_positive"),
                    models.CheckConstraint(
                        condition=(
                            models.Q(status="REJECTED") & ~models.Q(rejection_reason="")
                        ) | (
                            ~models.Q(status="REJECTED") & models.Q(rejection_reason="")
                        ),
                        name="plan_entry_reason_iff_rejected",
                    ),
                ],
            },
        ),
    ]
