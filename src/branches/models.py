"""Reference data for the sales network: districts, branches, officers."""
from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


# ---------------------------------------------------------------------------
# District
# ---------------------------------------------------------------------------

class District(TimeStampedModel):
    """Top-level area that owns one or more branches."""

    name = models.CharField("name", max_length=255)
    code = models.CharField("code", max_length=50, unique=True)
    is_active = models.BooleanField("active", default=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "District"
        verbose_name_plural = "Districts"

    def __str__(self):
        return self.name


# ---------------------------------------------------------------------------
# Branch
# ---------------------------------------------------------------------------

class Branch(TimeStampedModel):
    """A branch office; belongs to exactly one district."""

    district = models.ForeignKey(
        District,
        on_delete=models.PROTECT,
        related_name="branches",
        verbose_name="district",
    )
    name = models.CharField("name", max_length=255)
    code = models.CharField("code", max_length=50, unique=True)
    address = models.TextField("address", blank=True, default="")
    is_active = models.BooleanField("active", default=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "Branch"
        verbose_name_plural = "Branches"

    def __str__(self):
        return f"{self.name} ({self.district})"


# ---------------------------------------------------------------------------
# Officer
# ---------------------------------------------------------------------------

class Officer(TimeStampedModel):
    """Field officer working leads for one branch.

    An officer may exist as reference data only; ``user`` links the record
    to the login account that reports progress as this officer.
    """

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="officers",
        verbose_name="branch",
    )
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="officer_profile",
        verbose_name="login account",
    )
    name = models.CharField("name", max_length=255)
    is_active = models.BooleanField("active", default=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "Officer"
        verbose_name_plural = "Officers"

    def __str__(self):
        return self.name

    @property
    def district_id(self):
        return self.branch.district_id


# ---------------------------------------------------------------------------
# AuditLog
# ---------------------------------------------------------------------------

class AuditLog(models.Model):
    """Immutable log of every workflow action in the system."""

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )
    actor_name = models.CharField(max_length=255, blank=True, default="")
    district = models.ForeignKey(
        District,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )
    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )
    action = models.CharField(max_length=100)
    entity_type = models.CharField(max_length=100, db_index=True)
    entity_id = models.CharField(max_length=255)
    before_json = models.JSONField(null=True, blank=True)
    after_json = models.JSONField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Audit log"
        verbose_name_plural = "Audit logs"
        indexes = [
            models.Index(fields=["district", "created_at"], name="audit_district_created_idx"),
            models.Index(fields=["action", "created_at"], name="audit_action_created_idx"),
            models.Index(fields=["entity_type", "created_at"], name="audit_entity_created_idx"),
        ]

    def __str__(self):
        return f"[{self.created_at}] {self.action} on {self.entity_type} #{self.entity_id}"
