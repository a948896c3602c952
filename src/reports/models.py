"""Models for the reports app."""
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from core.models import TimeStampedModel


class ReportingSettings(TimeStampedModel):
    """Single row of reporting settings.

    Only the off-site distance threshold lives here.  When the row does not
    exist yet, ``settings.OFFSITE_THRESHOLD_KM`` applies.
    """

    SINGLETON_KEY = "default"

    key = models.CharField(max_length=20, unique=True, default=SINGLETON_KEY, editable=False)
    offsite_threshold_km = models.FloatField(
        "off-site threshold (km)",
        validators=[MinValueValidator(0.001)],
        help_text="Updates reported farther than this from the lead are flagged.",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        verbose_name = "Reporting settings"
        verbose_name_plural = "Reporting settings"
        constraints = [
            models.CheckConstraint(
                condition=Q(offsite_threshold_km__gt=0),
                name="reporting_threshold_positive",
            ),
        ]

    def __str__(self):
        return f"Off-site threshold: {self.offsite_threshold_km} km"

    @classmethod
    def current_threshold(cls) -> float:
        row = cls.objects.filter(key=cls.SINGLETON_KEY).first()
        if row is None:
            return float(getattr(settings, "OFFSITE_THRESHOLD_KM", 1.0))
        return row.offsite_threshold_km
