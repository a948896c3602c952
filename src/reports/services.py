"""Service functions for the reports app.

These functions load snapshots for what a user may see and hand them to
the pure metric modules, so views stay thin.
"""
from __future__ import annotations

import logging

from django.db import transaction

from branches.services import create_audit_log, visible_branch_ids, visible_district_ids
from core.export import rows_to_csv_response
from reports import snapshots
from reports.dashboard import build_dashboard
from reports.models import ReportingSettings
from reports.offsite import scan_offsite_reports, validate_threshold
from reports.savings import (
    lead_achievement,
    lead_generated_savings,
    plan_achievement,
    plan_totals,
)

logger = logging.getLogger("salesflow")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def get_offsite_threshold() -> float:
    return ReportingSettings.current_threshold()


@transaction.atomic
def set_offsite_threshold(threshold_km, user=None) -> ReportingSettings:
    """Store a new off-site threshold.

    Raises
    ------
    ValueError
        If *threshold_km* is not a positive number.
    """
    value = validate_threshold(threshold_km)
    row = ReportingSettings.objects.select_for_update().filter(key=ReportingSettings.SINGLETON_KEY).first()
    before = row.offsite_threshold_km if row else None
    if row is None:
        row = ReportingSettings(offsite_threshold_km=value, updated_by=user)
    else:
        row.offsite_threshold_km = value
        row.updated_by = user
    row.save()
    create_audit_log(
        user,
        "settings.offsite_threshold",
        "ReportingSettings",
        row.pk,
        before={"offsite_threshold_km": before},
        after={"offsite_threshold_km": value},
    )
    logger.info("Off-site threshold set to %s km by %s", value, user)
    return row


# ---------------------------------------------------------------------------
# Lead / plan metrics
# ---------------------------------------------------------------------------

def lead_metrics(lead) -> dict:
    snap = snapshots.snapshot_lead(lead)
    return {
        "expected_savings": snap.expected_savings,
        "generated_savings": lead_generated_savings(snap),
        "achievement": lead_achievement(snap),
    }


def plan_metrics(plan) -> dict:
    snap = snapshots.snapshot_plan(plan)
    totals = plan_totals(snap)
    return {
        "savings_target": snap.savings_target,
        "collections": totals.collections,
        "withdrawals": totals.withdrawals,
        "net_savings": totals.net,
        "achievement": plan_achievement(snap),
    }


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def dashboard_for_user(user, district_id=None, branch_id=None):
    """Build the dashboard over everything *user* may read."""
    district_ids = visible_district_ids(user)
    branch_ids = visible_branch_ids(user)
    return build_dashboard(
        leads=snapshots.load_leads(district_ids, branch_ids),
        plans=snapshots.load_plans(district_ids, branch_ids),
        districts=snapshots.load_districts(district_ids),
        branches=[
            b for b in snapshots.load_branches(district_ids)
            if branch_ids is None or b.id in branch_ids
        ],
        district_id=district_id,
        branch_id=branch_id,
    )


# ---------------------------------------------------------------------------
# Off-site reports
# ---------------------------------------------------------------------------

def offsite_reports_for_user(user, threshold_km=None):
    """Off-site reports over the leads *user* may read, most recent first."""
    if threshold_km is None:
        threshold_km = get_offsite_threshold()
    leads = snapshots.load_leads(visible_district_ids(user), visible_branch_ids(user))
    return scan_offsite_reports(leads, threshold_km)


OFFSITE_COLUMNS = [
    ("lead.title", "Lead"),
    ("update.author", "Reported by"),
    ("update.timestamp", "Reported at"),
    ("update.status", "Status"),
    ("distance_km", "Distance (km)"),
    ("update.text", "Update"),
]

PERFORMANCE_COLUMNS = [
    ("name", "Name"),
    ("lead_count", "Leads"),
    ("expected", "Expected savings"),
    ("generated", "Generated savings"),
    ("achievement", "Achievement (%)"),
]


def export_offsite_csv(reports, threshold_km):
    rows = [
        {
            "lead.title": r.lead.title,
            "update.author": r.update.author,
            "update.timestamp": r.update.timestamp.isoformat(),
            "update.status": r.update.status,
            "distance_km": f"{r.distance_km:.2f}",
            "update.text": r.update.text,
        }
        for r in reports
    ]
    logger.info("Exporting %d off-site reports (threshold %s km)", len(rows), threshold_km)
    return rows_to_csv_response(rows, OFFSITE_COLUMNS, "offsite_reports")


def export_performance_csv(dashboard, level="branch"):
    rows = dashboard.district_performance if level == "district" else dashboard.branch_performance
    return rows_to_csv_response(rows, PERFORMANCE_COLUMNS, f"{level}_performance")
