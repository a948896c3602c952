"""Business-logic / service functions for the plans app."""
from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.utils import timezone

from branches.services import create_audit_log
from core.exceptions import (
    AlreadyReviewed,
    DescriptionTooShort,
    DuplicatePlan,
    InvalidAmount,
    InvalidPlan,
    ReasonRequired,
    WorkflowError,
)
from plans.models import BranchPlan, PlanEntry

logger = logging.getLogger("salesflow")

QUARTER_RE = re.compile(r"^Q([1-4]) (\d{4})$")
MIN_DESCRIPTION_LENGTH = 5
MIN_REJECTION_REASON_LENGTH = 10


def parse_quarter(quarter: str) -> tuple[int, int]:
    """Return ``(year, quarter_number)`` for a label such as ``"Q3 2024"``.

    Raises
    ------
    InvalidPlan
        If the label is malformed.
    """
    match = QUARTER_RE.match((quarter or "").strip())
    if not match:
        raise InvalidPlan(f'Invalid quarter {quarter!r}; expected a label like "Q1 2024".')
    number, year = int(match.group(1)), int(match.group(2))
    if not 2000 <= year <= 2099:
        raise InvalidPlan(f"Quarter year {year} is out of range.")
    return year, number


def _to_amount(value, error_cls, label):
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise error_cls(f"Invalid {label}: {value!r}.") from None
    if not amount.is_finite():
        raise error_cls(f"Invalid {label}: {value!r}.")
    return amount


# ---------------------------------------------------------------------------
# create_plan
# ---------------------------------------------------------------------------

def create_plan(branch, quarter: str, savings_target, created_by=None) -> BranchPlan:
    """Create the savings plan of *branch* for *quarter*.

    Raises
    ------
    InvalidPlan
        If the quarter or target is invalid.
    DuplicatePlan
        If the branch already has a plan for that quarter.
    """
    if branch is None:
        raise InvalidPlan("A plan must belong to a branch.")
    quarter = (quarter or "").strip()
    parse_quarter(quarter)
    target = _to_amount(savings_target, InvalidPlan, "savings target")
    if target < 0:
        raise InvalidPlan("The savings target must be zero or more.")

    if BranchPlan.objects.filter(branch=branch, quarter=quarter).exists():
        raise DuplicatePlan(f"{branch.name} already has a plan for {quarter}.")
    try:
        with transaction.atomic():
            plan = BranchPlan.objects.create(branch=branch, quarter=quarter, savings_target=target)
    except IntegrityError:
        # lost a race with a concurrent create
        raise DuplicatePlan(f"{branch.name} already has a plan for {quarter}.") from None

    logger.info("Plan %s created for branch %s (%s, target %s)", plan.pk, branch, quarter, target)
    create_audit_log(
        created_by,
        "plan.create",
        "BranchPlan",
        plan.pk,
        district=branch.district,
        branch=branch,
        after={"quarter": quarter, "savings_target": str(target)},
    )
    return plan


# ---------------------------------------------------------------------------
# submit_entry
# ---------------------------------------------------------------------------

def submit_entry(
    plan: BranchPlan,
    entry_type: str,
    amount,
    description: str,
    submitted_by: str,
    date=None,
    user=None,
) -> PlanEntry:
    """Create a new PENDING entry on *plan*.

    Raises
    ------
    InvalidAmount
        If *amount* is not strictly positive.
    DescriptionTooShort
        If *description* is shorter than 5 characters.
    """
    if entry_type not in PlanEntry.EntryType.values:
        raise WorkflowError(f"Unknown entry type: {entry_type!r}.", code="INVALID_ENTRY_TYPE")
    value = _to_amount(amount, InvalidAmount, "amount")
    if value <= 0:
        raise InvalidAmount("The amount must be a positive number.")
    description = (description or "").strip()
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise DescriptionTooShort(
            f"The description must be at least {MIN_DESCRIPTION_LENGTH} characters long."
        )

    entry = PlanEntry.objects.create(
        plan=plan,
        date=date or timezone.localdate(),
        entry_type=entry_type,
        amount=value,
        description=description,
        status=PlanEntry.Status.PENDING,
        submitted_by=submitted_by,
    )
    logger.info(
        "Entry %s submitted on plan %s: %s %s by %s",
        entry.pk, plan.pk, entry_type, value, submitted_by,
    )
    create_audit_log(
        user,
        "plan_entry.submit",
        "PlanEntry",
        entry.pk,
        actor_name=submitted_by,
        district=plan.branch.district,
        branch=plan.branch,
        after={"type": entry_type, "amount": str(value), "status": entry.status},
    )
    return entry


# ---------------------------------------------------------------------------
# review_entry
# ---------------------------------------------------------------------------

@transaction.atomic
def review_entry(
    entry: PlanEntry,
    decision: str,
    reviewer_name: str,
    reason: str = "",
    user=None,
    ip: str | None = None,
) -> PlanEntry:
    """Approve or reject a PENDING entry.

    Only ``status``, ``reviewed_by``, ``reviewed_at`` and (on rejection)
    ``rejection_reason`` change.  The write is conditioned on the entry
    still being PENDING, so of two concurrent reviews only one succeeds.

    Raises
    ------
    AlreadyReviewed
        If the entry is no longer PENDING.
    ReasonRequired
        If a rejection comes with a reason shorter than 10 characters.
    """
    if decision not in (PlanEntry.Status.APPROVED, PlanEntry.Status.REJECTED):
        raise WorkflowError(f"Unknown review decision: {decision!r}.", code="INVALID_DECISION")

    locked = PlanEntry.objects.select_for_update().select_related("plan__branch").get(pk=entry.pk)
    if locked.status != PlanEntry.Status.PENDING:
        logger.warning("Entry %s already reviewed (%s)", locked.pk, locked.status)
        raise AlreadyReviewed(f"This entry has already been {locked.get_status_display().lower()}.")

    reason = (reason or "").strip()
    if decision == PlanEntry.Status.REJECTED and len(reason) < MIN_REJECTION_REASON_LENGTH:
        logger.warning("Rejection of entry %s refused: reason too short", locked.pk)
        raise ReasonRequired(
            f"A reason for rejection is required (min {MIN_REJECTION_REASON_LENGTH} characters)."
        )

    changes = {
        "status": decision,
        "reviewed_by": reviewer_name,
        "reviewed_at": timezone.now(),
        "updated_at": timezone.now(),
    }
    if decision == PlanEntry.Status.REJECTED:
        changes["rejection_reason"] = reason

    rows = PlanEntry.objects.filter(pk=locked.pk, status=PlanEntry.Status.PENDING).update(**changes)
    if rows != 1:
        raise AlreadyReviewed("This entry has already been reviewed.")

    locked.refresh_from_db()
    create_audit_log(
        user,
        "plan_entry.review",
        "PlanEntry",
        locked.pk,
        actor_name=reviewer_name,
        district=locked.plan.branch.district,
        branch=locked.plan.branch,
        before={"status": PlanEntry.Status.PENDING},
        after={"status": locked.status, "rejection_reason": locked.rejection_reason},
        ip=ip,
    )
    logger.info("Entry %s %s by %s", locked.pk, locked.status, reviewer_name)
    return locked
