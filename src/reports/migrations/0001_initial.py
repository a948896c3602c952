import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ReportingSettings",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("key", models.CharField(default="default", editable=False, max_length=20, unique=True)),
                (
                    "offsite_threshold_km",
                    models.FloatField(
                        help_text="Updates reported farther than this from the lead are flagged.",
                        validators=[django.core.validators.MinValueValidator(0.001)],
                        verbose_name="off-site threshold (km)",
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Reporting settings",
                "verbose_name_plural": "Reporting settings",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(offsite_threshold_km__gt=0),
                        name="reporting_threshold_positive",
                    ),
                ],
            },
        ),
    ]
