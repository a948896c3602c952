"""Models for the plans app."""
from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import TimeStampedModel


# ---------------------------------------------------------------------------
# BranchPlan
# ---------------------------------------------------------------------------

class BranchPlan(TimeStampedModel):
    """Quarterly savings target of one branch."""

    branch = models.ForeignKey(
        "branches.Branch",
        on_delete=models.PROTECT,
        related_name="plans",
        verbose_name="branch",
    )
    quarter = models.CharField("quarter", max_length=7, help_text='Format "Q1 2024".')
    savings_target = models.DecimalField(
        "savings target",
        max_digits=14,
        decimal_places=2,
    )

    class Meta:
        ordering = ["branch__name", "quarter"]
        verbose_name = "Branch plan"
        verbose_name_plural = "Branch plans"
        constraints = [
            models.UniqueConstraint(
                fields=["branch", "quarter"],
                name="uniq_branch_plan_quarter",
            ),
            models.CheckConstraint(
                condition=Q(savings_target__gte=0),
                name="branch_plan_target_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.branch.name} - {self.quarter}"


# ---------------------------------------------------------------------------
# PlanEntry
# ---------------------------------------------------------------------------

class PlanEntry(TimeStampedModel):
    """A collection or withdrawal submitted against a plan, pending review."""

    class EntryType(models.TextChoices):
        COLLECTION = "collection", "Collection"
        WITHDRAWAL = "withdrawal", "Withdrawal"

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    plan = models.ForeignKey(
        BranchPlan,
        on_delete=models.CASCADE,
        related_name="entries",
        verbose_name="plan",
    )
    date = models.DateField("date")
    entry_type = models.CharField(
        "type",
        max_length=20,
        choices=EntryType.choices,
    )
    amount = models.DecimalField("amount", max_digits=14, decimal_places=2)
    description = models.TextField("description")
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    submitted_by = models.CharField("submitted by", max_length=255)
    reviewed_by = models.CharField("reviewed by", max_length=255, blank=True, default="")
    reviewed_at = models.DateTimeField("reviewed at", null=True, blank=True)
    rejection_reason = models.TextField("rejection reason", blank=True, default="")

    class Meta:
        ordering = ["-date", "-created_at"]
        verbose_name = "Plan entry"
        verbose_name_plural = "Plan entries"
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="plan_entry_amount_positive",
            ),
            models.CheckConstraint(
                condition=(
                    Q(status="REJECTED") & ~Q(rejection_reason="")
                ) | (
                    ~Q(status="REJECTED") & Q(rejection_reason="")
                ),
                name="plan_entry_reason_iff_rejected",
            ),
        ]
        indexes = [
            models.Index(fields=["plan", "status"], name="plan_entry_plan_status_idx"),
        ]

    def __str__(self):
        return f"{self.get_entry_type_display()} {self.amount} ({self.get_status_display()})"
