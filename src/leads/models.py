"""Models for the leads app."""
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from core.models import TimeStampedModel


# ---------------------------------------------------------------------------
# SalesLead
# ---------------------------------------------------------------------------

class SalesLead(TimeStampedModel):
    """A sales opportunity worked through the district/branch/officer chain.

    ``status``, ``branch``, ``officer`` and ``version`` are only ever written
    by :func:`leads.services.apply_transition`.
    """

    class Status(models.TextChoices):
        NEW = "NEW", "New"
        ASSIGNED = "ASSIGNED", "Assigned"
        IN_PROGRESS = "IN_PROGRESS", "In Progress"
        PENDING_CLOSURE = "PENDING_CLOSURE", "Pending Closure"
        PENDING_DISTRICT_APPROVAL = "PENDING_DISTRICT_APPROVAL", "Pending District Approval"
        CLOSED = "CLOSED", "Closed"
        REOPENED = "REOPENED", "Reopened"

    title = models.CharField("title", max_length=255)
    description = models.TextField("description")
    status = models.CharField(
        "status",
        max_length=30,
        choices=Status.choices,
        default=Status.NEW,
        db_index=True,
    )
    district = models.ForeignKey(
        "branches.District",
        on_delete=models.PROTECT,
        related_name="leads",
        verbose_name="district",
    )
    branch = models.ForeignKey(
        "branches.Branch",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="leads",
        verbose_name="branch",
    )
    officer = models.ForeignKey(
        "branches.Officer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="leads",
        verbose_name="officer",
    )
    latitude = models.FloatField("latitude")
    longitude = models.FloatField("longitude")
    expected_savings = models.DecimalField(
        "expected savings",
        max_digits=14,
        decimal_places=2,
    )
    deadline = models.DateField("deadline")
    version = models.PositiveIntegerField("version", default=0)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_leads",
        verbose_name="created by",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Sales lead"
        verbose_name_plural = "Sales leads"
        constraints = [
            models.CheckConstraint(
                condition=Q(expected_savings__gte=0),
                name="lead_expected_savings_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(officer__isnull=True) | Q(branch__isnull=False),
                name="lead_officer_requires_branch",
            ),
        ]
        indexes = [
            models.Index(fields=["district", "status"], name="lead_district_status_idx"),
            models.Index(fields=["branch", "status"], name="lead_branch_status_idx"),
        ]

    def __str__(self):
        return f"{self.title} [{self.get_status_display()}]"

    def clean(self):
        from leads.workflow import check_assignment

        problem = check_assignment(self.district, self.branch, self.officer)
        if problem:
            raise ValidationError(problem)

    @property
    def location(self):
        return (self.latitude, self.longitude)

    @property
    def is_closed(self):
        return self.status == self.Status.CLOSED


# ---------------------------------------------------------------------------
# LeadUpdate
# ---------------------------------------------------------------------------

class LeadUpdate(models.Model):
    """One entry of a lead's append-only history.

    Rows are immutable once written: saving an existing row or deleting one
    raises ``ValidationError``.
    """

    lead = models.ForeignKey(
        SalesLead,
        on_delete=models.CASCADE,
        related_name="updates",
        verbose_name="lead",
    )
    text = models.TextField("text")
    timestamp = models.DateTimeField("timestamp", db_index=True)
    author = models.CharField("author", max_length=255)
    status = models.CharField(
        "status",
        max_length=30,
        choices=SalesLead.Status.choices,
    )
    generated_savings = models.DecimalField(
        "generated savings",
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
    )
    attachment_name = models.CharField("attachment name", max_length=255, blank=True, default="")
    attachment_ref = models.CharField("attachment reference", max_length=500, blank=True, default="")
    reporting_latitude = models.FloatField("reporting latitude", null=True, blank=True)
    reporting_longitude = models.FloatField("reporting longitude", null=True, blank=True)

    class Meta:
        ordering = ["timestamp", "id"]
        verbose_name = "Lead update"
        verbose_name_plural = "Lead updates"
        constraints = [
            models.CheckConstraint(
                condition=Q(generated_savings__isnull=True) | Q(generated_savings__gte=0),
                name="lead_update_savings_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.lead_id} @ {self.timestamp}: {self.text[:40]}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Lead updates are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Lead updates cannot be deleted.")

    @property
    def reporting_location(self):
        if self.reporting_latitude is None or self.reporting_longitude is None:
            return None
        return (self.reporting_latitude, self.reporting_longitude)
