"""Lead state machine.

Pure rules over a lead's current state: no database access, no locking.
:func:`plan_transition` validates a requested action against the role table
and returns a :class:`TransitionPlan` describing what to write;
:mod:`leads.services` applies it inside a transaction.

Graph::

    NEW -> ASSIGNED -> IN_PROGRESS -> PENDING_CLOSURE -> PENDING_DISTRICT_APPROVAL -> CLOSED
                          ^   |            |                      |
                          |   v            v                      v
                          REOPENED <-------+----------------------+

CLOSED is terminal.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from accounts.services import BRANCH_MANAGER, DISTRICT_MANAGER, OFFICER
from core.exceptions import InvalidAmount, InvalidTransition, ReasonRequired
from leads.models import SalesLead

Status = SalesLead.Status

# Every action returned by _available_actions follows one of these edges.
GRAPH = {
    Status.NEW: {Status.ASSIGNED},
    Status.ASSIGNED: {Status.IN_PROGRESS, Status.PENDING_CLOSURE},
    Status.IN_PROGRESS: {Status.IN_PROGRESS, Status.PENDING_CLOSURE, Status.REOPENED},
    Status.PENDING_CLOSURE: {Status.PENDING_DISTRICT_APPROVAL, Status.REOPENED},
    Status.PENDING_DISTRICT_APPROVAL: {Status.CLOSED, Status.REOPENED},
    Status.REOPENED: {Status.ASSIGNED, Status.IN_PROGRESS, Status.PENDING_CLOSURE},
    Status.CLOSED: set(),
}

# Action kinds
STATUS_CHANGE = "status"
ASSIGN_BRANCH = "assign_branch"
ASSIGN_OFFICER = "assign_officer"
REWORK = "rework"

OFFICER_SOURCES = frozenset({Status.ASSIGNED, Status.IN_PROGRESS, Status.REOPENED})
OFFICER_TARGETS = (Status.IN_PROGRESS, Status.PENDING_CLOSURE)


@dataclass(frozen=True)
class TransitionPlan:
    """Validated outcome of a requested action."""

    kind: str
    from_status: str
    status: str
    text: str
    branch: object = None
    officer: object = None
    generated_savings: Decimal | None = None


# ---------------------------------------------------------------------------
# Assignment invariant
# ---------------------------------------------------------------------------

def check_assignment(district, branch, officer) -> str | None:
    """Return a description of what breaks ``officer => branch => district``.

    Returns ``None`` when the combination is consistent.
    """
    if officer is not None and branch is None:
        return "An officer can only be set on a lead that has a branch."
    if officer is not None and officer.branch_id != branch.pk:
        return f"Officer {officer.name} does not belong to branch {branch.name}."
    if branch is not None and district is not None and branch.district_id != district.pk:
        return f"Branch {branch.name} does not belong to district {district.name}."
    return None


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

def _in_scope(lead, actor) -> bool:
    if actor.role == OFFICER:
        return lead.officer_id is not None and lead.officer_id == actor.officer_id
    if actor.role == BRANCH_MANAGER:
        return actor.branch_id is not None and lead.branch_id == actor.branch_id
    if actor.role == DISTRICT_MANAGER:
        return actor.district_id is None or lead.district_id == actor.district_id
    return False


def _available_actions(lead, actor) -> dict[str, str]:
    """Map every target status *actor* may request right now to its action kind."""
    status = lead.status
    if lead.is_closed or not _in_scope(lead, actor):
        return {}

    if actor.role == OFFICER:
        if status in OFFICER_SOURCES:
            return {target: STATUS_CHANGE for target in OFFICER_TARGETS}
        return {}

    if actor.role == BRANCH_MANAGER:
        if status == Status.PENDING_CLOSURE:
            return {
                Status.PENDING_DISTRICT_APPROVAL: STATUS_CHANGE,
                Status.REOPENED: REWORK,
            }
        if lead.branch_id is not None and lead.officer_id is None:
            return {Status.IN_PROGRESS: ASSIGN_OFFICER}
        return {}

    if actor.role == DISTRICT_MANAGER:
        if status == Status.PENDING_DISTRICT_APPROVAL:
            return {Status.CLOSED: STATUS_CHANGE, Status.REOPENED: REWORK}
        if lead.branch_id is None:
            return {Status.ASSIGNED: ASSIGN_BRANCH}
        return {}

    return {}


def allowed_transitions(lead, actor) -> list[str]:
    """Target statuses *actor* may currently request on *lead*."""
    if actor is None:
        return []
    return list(_available_actions(lead, actor))


def status_label(status) -> str:
    return Status(status).label


def auto_text(kind, status, actor, *, branch=None, officer=None) -> str:
    if kind == ASSIGN_BRANCH:
        return f"Assigned to branch {branch.name}."
    if kind == ASSIGN_OFFICER:
        return f"Assigned to officer {officer.name}."
    return f"Status changed to {status_label(status)} by {actor.role_label}."


def parse_savings(value) -> Decimal | None:
    """Coerce a reported savings figure; ``None`` and ``""`` mean "not reported"."""
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Invalid savings amount: {value!r}.") from None
    if not amount.is_finite():
        raise InvalidAmount(f"Invalid savings amount: {value!r}.")
    if amount < 0:
        raise InvalidAmount("Generated savings cannot be negative.")
    return amount


# ---------------------------------------------------------------------------
# plan_transition
# ---------------------------------------------------------------------------

def plan_transition(
    lead,
    actor,
    new_status=None,
    note: str = "",
    *,
    branch=None,
    officer=None,
    generated_savings=None,
) -> TransitionPlan:
    """Validate an action on *lead* and describe its effect.

    Parameters
    ----------
    lead : leads.models.SalesLead
        Current state of the lead; it is not modified.
    actor : accounts.services.Actor
    new_status : str, optional
        Requested status.  May be omitted for assignments, whose target is
        implied (``ASSIGNED`` for a branch, ``IN_PROGRESS`` for an officer).
    note : str
        Free text written into the update; required for rework.
    branch, officer : optional
        Assignment side effects.
    generated_savings : optional
        Savings achieved so far; officers only.

    Returns
    -------
    TransitionPlan

    Raises
    ------
    InvalidTransition
        If the role table refuses the action.
    ReasonRequired
        If a rework is requested without a note.
    InvalidAmount
        If the savings figure is malformed or negative.
    """
    note = (note or "").strip()

    if lead.is_closed:
        raise InvalidTransition("The lead is closed; no further changes are allowed.")

    if actor is None or actor.role not in (OFFICER, BRANCH_MANAGER, DISTRICT_MANAGER):
        raise InvalidTransition("This user has no role in the lead workflow.")

    if not _in_scope(lead, actor):
        if actor.role == OFFICER:
            raise InvalidTransition("This lead is not assigned to you.")
        raise InvalidTransition("This lead is outside your area of responsibility.")

    savings = parse_savings(generated_savings)
    if savings is not None and actor.role != OFFICER:
        raise InvalidTransition("Only the assigned officer can report generated savings.")

    if branch is not None and officer is not None:
        raise InvalidTransition("A branch and an officer cannot be assigned in the same step.")

    if branch is not None or officer is not None:
        return _plan_assignment(lead, actor, new_status, note, branch, officer)

    if new_status is None:
        raise InvalidTransition("A target status is required.")
    if new_status not in Status.values:
        raise InvalidTransition(f"Unknown status: {new_status!r}.")

    actions = _available_actions(lead, actor)
    kind = actions.get(new_status)
    if kind is None:
        raise InvalidTransition(
            f"A {actor.role_label} cannot move a lead from "
            f"{status_label(lead.status)} to {status_label(new_status)}."
        )
    if kind == ASSIGN_OFFICER:
        raise InvalidTransition("Choose an officer to start work on this lead.")
    if kind == ASSIGN_BRANCH:
        raise InvalidTransition("Choose a branch to assign this lead.")
    if kind == REWORK and not note:
        raise ReasonRequired("A note explaining the rework is required.")

    return TransitionPlan(
        kind=kind,
        from_status=lead.status,
        status=Status(new_status),
        text=note or auto_text(kind, new_status, actor),
        generated_savings=savings,
    )


def _plan_assignment(lead, actor, new_status, note, branch, officer) -> TransitionPlan:
    if branch is not None:
        if actor.role != DISTRICT_MANAGER:
            raise InvalidTransition("Only a district manager can assign a branch.")
        if lead.branch_id is not None:
            raise InvalidTransition("The lead already has a branch.")
        if branch.district_id != lead.district_id:
            raise InvalidTransition(f"Branch {branch.name} does not belong to the lead's district.")
        kind, target = ASSIGN_BRANCH, Status.ASSIGNED
    else:
        if actor.role != BRANCH_MANAGER:
            raise InvalidTransition("Only a branch manager can assign an officer.")
        if lead.branch_id is None:
            raise InvalidTransition("The lead has no branch yet.")
        if lead.officer_id is not None:
            raise InvalidTransition("The lead already has an officer.")
        if officer.branch_id != lead.branch_id:
            raise InvalidTransition(f"Officer {officer.name} does not belong to the lead's branch.")
        if not getattr(officer, "is_active", True):
            raise InvalidTransition(f"Officer {officer.name} is inactive.")
        kind, target = ASSIGN_OFFICER, Status.IN_PROGRESS

    if new_status is not None and new_status != target:
        raise InvalidTransition(
            f"An assignment moves the lead to {status_label(target)}, not {new_status}."
        )
    if _available_actions(lead, actor).get(target) != kind:
        raise InvalidTransition(
            f"A {actor.role_label} cannot assign a lead in status {status_label(lead.status)}."
        )

    return TransitionPlan(
        kind=kind,
        from_status=lead.status,
        status=target,
        text=note or auto_text(kind, target, actor, branch=branch, officer=officer),
        branch=branch,
        officer=officer,
    )
