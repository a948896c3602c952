"""Immutable read-side views of leads and plans.

The metric functions in :mod:`reports.savings`, :mod:`reports.offsite` and
:mod:`reports.dashboard` work on these snapshots only, so they never touch
the database and can be tested with plain objects.  The ``load_*``
functions build snapshots from the ORM without taking any lock.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from django.db.models import Prefetch


@dataclass(frozen=True)
class UpdateSnapshot:
    id: object
    text: str
    timestamp: datetime
    author: str
    status: str
    generated_savings: Decimal | None = None
    reporting_location: tuple[float, float] | None = None


@dataclass(frozen=True)
class LeadSnapshot:
    id: object
    title: str
    status: str
    district_id: object
    branch_id: object | None
    officer_id: object | None
    location: tuple[float, float]
    expected_savings: Decimal
    deadline: date | None = None
    officer_name: str = ""
    updates: tuple[UpdateSnapshot, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EntrySnapshot:
    id: object
    entry_type: str
    amount: Decimal
    status: str


@dataclass(frozen=True)
class PlanSnapshot:
    id: object
    branch_id: object
    district_id: object
    quarter: str
    savings_target: Decimal
    entries: tuple[EntrySnapshot, ...] = field(default_factory=tuple)
    branch_name: str = ""


@dataclass(frozen=True)
class DistrictRef:
    id: object
    name: str


@dataclass(frozen=True)
class BranchRef:
    id: object
    name: str
    district_id: object


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------

def snapshot_update(update) -> UpdateSnapshot:
    return UpdateSnapshot(
        id=update.pk,
        text=update.text,
        timestamp=update.timestamp,
        author=update.author,
        status=update.status,
        generated_savings=update.generated_savings,
        reporting_location=update.reporting_location,
    )


def snapshot_lead(lead) -> LeadSnapshot:
    return LeadSnapshot(
        id=lead.pk,
        title=lead.title,
        status=lead.status,
        district_id=lead.district_id,
        branch_id=lead.branch_id,
        officer_id=lead.officer_id,
        location=(lead.latitude, lead.longitude),
        expected_savings=lead.expected_savings,
        deadline=lead.deadline,
        officer_name=lead.officer.name if lead.officer_id else "",
        updates=tuple(snapshot_update(u) for u in lead.updates.all()),
    )


def snapshot_plan(plan) -> PlanSnapshot:
    return PlanSnapshot(
        id=plan.pk,
        branch_id=plan.branch_id,
        district_id=plan.branch.district_id,
        quarter=plan.quarter,
        savings_target=plan.savings_target,
        entries=tuple(
            EntrySnapshot(id=e.pk, entry_type=e.entry_type, amount=e.amount, status=e.status)
            for e in plan.entries.all()
        ),
        branch_name=plan.branch.name,
    )


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

def load_leads(district_ids=None, branch_ids=None) -> list[LeadSnapshot]:
    """Snapshot leads, optionally restricted to some districts / branches."""
    from leads.models import LeadUpdate, SalesLead

    qs = SalesLead.objects.select_related("officer").prefetch_related(
        Prefetch("updates", queryset=LeadUpdate.objects.order_by("timestamp", "id"))
    )
    if district_ids is not None:
        qs = qs.filter(district_id__in=district_ids)
    if branch_ids is not None:
        qs = qs.filter(branch_id__in=branch_ids)
    return [snapshot_lead(lead) for lead in qs]


def load_plans(district_ids=None, branch_ids=None, quarter=None) -> list[PlanSnapshot]:
    from plans.models import BranchPlan

    qs = BranchPlan.objects.select_related("branch").prefetch_related("entries")
    if district_ids is not None:
        qs = qs.filter(branch__district_id__in=district_ids)
    if branch_ids is not None:
        qs = qs.filter(branch_id__in=branch_ids)
    if quarter:
        qs = qs.filter(quarter=quarter)
    return [snapshot_plan(plan) for plan in qs]


def load_districts(district_ids=None) -> list[DistrictRef]:
    from branches.models import District

    qs = District.objects.all()
    if district_ids is not None:
        qs = qs.filter(pk__in=district_ids)
    return [DistrictRef(id=d.pk, name=d.name) for d in qs.order_by("name")]


def load_branches(district_ids=None) -> list[BranchRef]:
    from branches.models import Branch

    qs = Branch.objects.all()
    if district_ids is not None:
        qs = qs.filter(district_id__in=district_ids)
    return [BranchRef(id=b.pk, name=b.name, district_id=b.district_id) for b in qs.order_by("name")]
