"""Business-logic / service functions for the leads app."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from django.core.exceptions import SuspiciousOperation
from django.core.files.storage import default_storage
from django.db import transaction
from django.utils import timezone

from branches.services import create_audit_log
from core.exceptions import ConcurrentModification, InvalidLead, WorkflowError
from leads.models import LeadUpdate, SalesLead
from leads.workflow import plan_transition
from reports.geo import coerce_point

logger = logging.getLogger("salesflow")

ATTACHMENT_DIR = "lead-attachments"


@dataclass
class TransitionResult:
    """Outcome of :func:`apply_transition`.

    ``warnings`` lists best-effort side effects (location capture,
    attachment storage) that were dropped without blocking the transition.
    """

    lead: SalesLead
    update: LeadUpdate
    warnings: list[str] = field(default_factory=list)


def _lead_state(lead) -> dict:
    return {
        "status": lead.status,
        "branch": str(lead.branch_id) if lead.branch_id else None,
        "officer": str(lead.officer_id) if lead.officer_id else None,
        "version": lead.version,
    }


# ---------------------------------------------------------------------------
# create_lead
# ---------------------------------------------------------------------------

def create_lead(
    district,
    title: str,
    description: str,
    latitude,
    longitude,
    expected_savings,
    deadline,
    created_by=None,
) -> SalesLead:
    """Register a new lead in status NEW.

    Raises
    ------
    InvalidLead
        If any field fails validation.
    """
    title = (title or "").strip()
    description = (description or "").strip()

    if district is None:
        raise InvalidLead("A lead must belong to a district.")
    if len(title) < 3:
        raise InvalidLead("The title must be at least 3 characters long.")
    if len(description) < 10:
        raise InvalidLead("The description must be at least 10 characters long.")
    try:
        point = coerce_point((latitude, longitude))
    except ValueError as exc:
        raise InvalidLead(str(exc)) from None
    try:
        expected = Decimal(str(expected_savings))
    except (InvalidOperation, ValueError):
        raise InvalidLead(f"Invalid expected savings: {expected_savings!r}.") from None
    if not expected.is_finite() or expected < 0:
        raise InvalidLead("Expected savings must be zero or more.")
    if deadline is None:
        raise InvalidLead("A deadline is required.")

    lead = SalesLead.objects.create(
        district=district,
        title=title,
        description=description,
        latitude=point.lat,
        longitude=point.lng,
        expected_savings=expected,
        deadline=deadline,
        status=SalesLead.Status.NEW,
        created_by=created_by,
    )
    logger.info("Lead %s created in district %s by %s", lead.pk, district, created_by)
    create_audit_log(
        created_by,
        "lead.create",
        "SalesLead",
        lead.pk,
        district=district,
        after=_lead_state(lead),
    )
    return lead


# ---------------------------------------------------------------------------
# Best-effort side effects
# ---------------------------------------------------------------------------

def _capture_location(location, warnings):
    try:
        return coerce_point(location)
    except ValueError as exc:
        logger.warning("Dropping reporting location: %s", exc)
        warnings.append(f"Location not recorded: {exc}")
        return None


def _store_attachment(lead, attachment, warnings):
    """Save *attachment* and return ``(name, ref)``; ``("", "")`` when absent or failed."""
    if attachment is None:
        return "", ""
    name = getattr(attachment, "name", "") or "attachment"
    try:
        ref = default_storage.save(f"{ATTACHMENT_DIR}/{lead.pk}/{name}", attachment)
    except (OSError, SuspiciousOperation) as exc:
        logger.warning("Attachment %s for lead %s not stored: %s", name, lead.pk, exc)
        warnings.append(f"Attachment not stored: {name}")
        return "", ""
    return name, ref


# ---------------------------------------------------------------------------
# apply_transition
# ---------------------------------------------------------------------------

@transaction.atomic
def apply_transition(
    lead: SalesLead,
    actor,
    new_status=None,
    note: str = "",
    *,
    branch=None,
    officer=None,
    generated_savings=None,
    attachment=None,
    location=None,
    expected_version: int | None = None,
    user=None,
    ip: str | None = None,
) -> TransitionResult:
    """Validate and apply one workflow action to *lead*.

    The lead row is locked for the duration of the transaction and written
    through a version-guarded ``UPDATE``.  Exactly one :class:`LeadUpdate`
    and one audit log entry are appended on success.

    Parameters
    ----------
    lead : SalesLead
    actor : accounts.services.Actor
    new_status : str, optional
    note : str
    branch, officer : optional
        Assignment side effects.
    generated_savings : optional
        Savings reported by the officer.
    attachment : File, optional
        Stored through ``default_storage``; failure becomes a warning.
    location : optional
        Where the actor reported from; malformed values become a warning.
    expected_version : int, optional
        Version the caller last read; a mismatch raises
        ``ConcurrentModification``.
    user : accounts.models.User, optional
        Login account recorded in the audit log.
    ip : str, optional

    Returns
    -------
    TransitionResult

    Raises
    ------
    WorkflowError
        If the action is refused.  The lead is left unmodified.
    """
    locked = (
        SalesLead.objects.select_for_update()
        .select_related("district", "branch", "officer")
        .get(pk=lead.pk)
    )
    if expected_version is not None and locked.version != expected_version:
        raise ConcurrentModification(
            "The lead was modified by someone else. Reload it and try again."
        )

    try:
        plan = plan_transition(
            locked,
            actor,
            new_status,
            note,
            branch=branch,
            officer=officer,
            generated_savings=generated_savings,
        )
    except WorkflowError as exc:
        logger.warning(
            "Refused %s on lead %s by %s (%s): %s",
            new_status or "assignment", locked.pk, actor.display_name if actor else None,
            exc.code, exc,
        )
        raise

    before = _lead_state(locked)
    warnings: list[str] = []
    point = _capture_location(location, warnings)

    now = timezone.now()
    changes = {"status": plan.status, "version": locked.version + 1, "updated_at": now}
    if plan.branch is not None:
        changes["branch"] = plan.branch
    if plan.officer is not None:
        changes["officer"] = plan.officer

    rows = SalesLead.objects.filter(pk=locked.pk, version=locked.version).update(**changes)
    if rows != 1:
        raise ConcurrentModification(
            "The lead was modified by someone else. Reload it and try again."
        )

    attachment_name, attachment_ref = _store_attachment(locked, attachment, warnings)
    try:
        update = LeadUpdate.objects.create(
            lead=locked,
            text=plan.text,
            timestamp=now,
            author=actor.display_name,
            status=plan.status,
            generated_savings=plan.generated_savings,
            attachment_name=attachment_name,
            attachment_ref=attachment_ref,
            reporting_latitude=point.lat if point else None,
            reporting_longitude=point.lng if point else None,
        )

        locked.refresh_from_db()
        create_audit_log(
            user,
            f"lead.{plan.kind}",
            "SalesLead",
            locked.pk,
            actor_name=actor.display_name,
            district=locked.district,
            branch=locked.branch,
            before=before,
            after=_lead_state(locked),
            ip=ip,
        )
    except Exception:
        # storage is not transactional
        if attachment_ref:
            default_storage.delete(attachment_ref)
        raise
    logger.info(
        "Lead %s: %s -> %s by %s (%s)",
        locked.pk, plan.from_status, plan.status, actor.display_name, plan.kind,
    )
    return TransitionResult(lead=locked, update=update, warnings=warnings)


def lead_history(lead):
    """Updates of *lead* in chronological order."""
    return lead.updates.order_by("timestamp", "id")
