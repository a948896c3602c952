import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ("NEW", "New"),
    ("ASSIGNED", "Assigned"),
    ("IN_PROGRESS", "In Progress"),
    ("PENDING_CLOSURE", "Pending Closure"),
    ("PENDING_DISTRICT_APPROVAL", "Pending District Approval"),
    ("CLOSED", "Closed"),
    ("REOPENED", "Reopened"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("branches", "0002_officer_auditlog"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SalesLead",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("title", models.CharField(max_length=255, verbose_name="title")),
                ("description", models.TextField(verbose_name="description")),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES,
                        db_index=True,
                        default="NEW",
                        max_length=30,
                        verbose_name="status",
                    ),
                ),
                ("latitude", models.FloatField(verbose_name="latitude")),
                ("longitude", models.FloatField(verbose_name="longitude")),
                (
                    "expected_savings",
                    models.DecimalField(decimal_places=2, max_digits=14, verbose_name="expected savings"),
                ),
                ("deadline", models.DateField(verbose_name="deadline")),
                ("version", models.PositiveIntegerField(default=0, verbose_name="version")),
                (
                    "district",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="leads",
                        to="branches.district",
                        verbose_name="district",
                    ),
                ),
                (
                    "branch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="leads",
                        to="branches.branch",
                        verbose_name="branch",
                    ),
                ),
                (
                    "officer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="leads",
                        to="branches.officer",
                        verbose_name="officer",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_leads",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="created by",
                    ),
                ),
            ],
            options={
                "verbose_name": "Sales lead",
                "verbose_name_plural": "Sales leads",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["district", "status"], name="lead_district_status_idx"),
                    models.Index(fields=["branch", "status"], name="lead_branch_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(expected_savings__gte=0),
                        name="lead_expected_savings_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(officer__isnull=True) | models.Q(branch__isnull=False),
                        name="lead_officer_requires_branch",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LeadUpdate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("text", models.TextField(verbose_name="text")),
                ("timestamp", models.DateTimeField(db_index=True, verbose_name="timestamp")),
                ("author", models.CharField(max_length=255, verbose_name="author")),
                ("status", models.CharField(choices=STATUS_CHOICES, max_length=30, verbose_name="status")),
                (
                    "generated_savings",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=14, null=True, verbose_name="generated savings",
                    ),
                ),
                (
                    "attachment_name",
                    models.CharField(blank=True, default="", max_length=255, verbose_name="attachment name"),
                ),
                (
                    "attachment_ref",
                    models.CharField(blank=True, default="", max_length=500, verbose_name="attachment reference"),
                ),
                ("reporting_latitude", models.FloatField(blank=True, null=True, verbose_name="reporting latitude")),
                ("reporting_longitude", models.FloatField(blank=True, null=True, verbose_name="reporting longitude")),
                (
                    "lead",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="updates",
                        to="leads.saleslead",
                        verbose_name="lead",
                    ),
                ),
            ],
            options={
                "verbose_name": "Lead update",
                "verbose_name_plural": "Lead updates",
                "ordering": ["timestamp", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(generated_savings__isnull=True) | models.Q(generated_savings__gte=0),
                        name="lead_update_savings_non_negative",
                    ),
                ],
            },
        ),
    ]
