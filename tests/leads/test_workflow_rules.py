"""Role table of the lead state machine, exercised on unsaved model instances."""
from datetime import date
from decimal import Decimal

import pytest

from accounts.services import Actor
from branches.models import Branch, District, Officer
from core.exceptions import InvalidAmount, InvalidTransition, ReasonRequired
from leads.models import SalesLead
from leads.workflow import (
    ASSIGN_BRANCH,
    ASSIGN_OFFICER,
    GRAPH,
    REWORK,
    allowed_transitions,
    check_assignment,
    plan_transition,
)

S = SalesLead.Status

DISTRICT = District(name="Littoral", code="LIT")
OTHER_DISTRICT = District(name="Centre", code="CEN")
BRANCH = Branch(name="Akwa", code="AKW", district=DISTRICT)
SIBLING = Branch(name="Bonapriso", code="BNP", district=DISTRICT)
FAR_BRANCH = Branch(name="Bastos", code="BST", district=OTHER_DISTRICT)
ADA = Officer(name="Ada Mbarga", branch=BRANCH)
PAUL = Officer(name="Paul Essomba", branch=BRANCH)
YVES = Officer(name="Yves Nkodo", branch=SIBLING)

OFFICER = Actor.officer(ADA)
BRANCH_MANAGER = Actor.branch_manager(BRANCH)
DISTRICT_MANAGER = Actor.district_manager(DISTRICT)
ADMIN = Actor.district_manager()


def lead(status, branch=BRANCH, officer=ADA):
    if status == S.NEW:
        branch, officer = None, None
    elif status == S.ASSIGNED:
        officer = None
    return SalesLead(
        title="Payroll migration",
        description="Move the payroll of a 200-staff company.",
        district=DISTRICT,
        branch=branch,
        officer=officer,
        status=status,
        latitude=4.05,
        longitude=9.76,
        expected_savings=Decimal("50000"),
        deadline=date(2030, 1, 1),
    )


# ---------------------------------------------------------------------------
# Officer
# ---------------------------------------------------------------------------

class TestOfficer:
    @pytest.mark.parametrize("current", [S.ASSIGNED, S.IN_PROGRESS, S.REOPENED])
    @pytest.mark.parametrize("target", [S.IN_PROGRESS, S.PENDING_CLOSURE])
    def test_allowed_moves(self, current, target):
        item = lead(current)
        if current == S.ASSIGNED:
            item.officer = ADA
        plan = plan_transition(item, OFFICER, target)
        assert plan.status == target

    def test_auto_text_names_status_and_role(self):
        plan = plan_transition(lead(S.IN_PROGRESS), OFFICER, S.PENDING_CLOSURE)
        assert plan.text == "Status changed to Pending Closure by Officer."

    def test_progress_note_is_used_as_text(self):
        plan = plan_transition(lead(S.IN_PROGRESS), OFFICER, S.IN_PROGRESS, "  Met the CFO today.  ")
        assert plan.text == "Met the CFO today."
        assert plan.status == S.IN_PROGRESS

    def test_savings_are_parsed(self):
        plan = plan_transition(lead(S.IN_PROGRESS), OFFICER, S.IN_PROGRESS, generated_savings="25000")
        assert plan.generated_savings == Decimal("25000")

    def test_negative_savings_rejected(self):
        with pytest.raises(InvalidAmount):
            plan_transition(lead(S.IN_PROGRESS), OFFICER, S.IN_PROGRESS, generated_savings=-1)

    def test_garbage_savings_rejected(self):
        with pytest.raises(InvalidAmount):
            plan_transition(lead(S.IN_PROGRESS), OFFICER, S.IN_PROGRESS, generated_savings="lots")

    def test_cannot_act_on_someone_elses_lead(self):
        with pytest.raises(InvalidTransition, match="not assigned to you"):
            plan_transition(lead(S.IN_PROGRESS, officer=PAUL), OFFICER, S.PENDING_CLOSURE)

    @pytest.mark.parametrize("target", [S.CLOSED, S.PENDING_DISTRICT_APPROVAL, S.REOPENED, S.ASSIGNED])
    def test_cannot_request_manager_statuses(self, target):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.IN_PROGRESS), OFFICER, target)

    @pytest.mark.parametrize("current", [S.PENDING_CLOSURE, S.PENDING_DISTRICT_APPROVAL])
    def test_cannot_act_while_pending_approval(self, current):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(current), OFFICER, S.IN_PROGRESS)

    def test_cannot_assign(self):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.IN_PROGRESS), OFFICER, officer=PAUL)


# ---------------------------------------------------------------------------
# Branch manager
# ---------------------------------------------------------------------------

class TestBranchManager:
    def test_assign_officer_starts_work(self):
        plan = plan_transition(lead(S.ASSIGNED), BRANCH_MANAGER, officer=ADA)
        assert plan.kind == ASSIGN_OFFICER
        assert plan.status == S.IN_PROGRESS
        assert plan.officer is ADA
        assert plan.text == "Assigned to officer Ada Mbarga."

    def test_assign_officer_with_explicit_target(self):
        plan = plan_transition(lead(S.ASSIGNED), BRANCH_MANAGER, S.IN_PROGRESS, officer=ADA)
        assert plan.status == S.IN_PROGRESS

    def test_assign_officer_wrong_target(self):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.ASSIGNED), BRANCH_MANAGER, S.PENDING_CLOSURE, officer=ADA)

    def test_officer_from_another_branch_refused(self):
        with pytest.raises(InvalidTransition, match="does not belong"):
            plan_transition(lead(S.ASSIGNED), BRANCH_MANAGER, officer=YVES)

    def test_lead_that_already_has_an_officer(self):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.IN_PROGRESS), BRANCH_MANAGER, officer=PAUL)

    def test_in_progress_without_officer_refused(self):
        with pytest.raises(InvalidTransition, match="Choose an officer"):
            plan_transition(lead(S.ASSIGNED), BRANCH_MANAGER, S.IN_PROGRESS)

    def test_approve_closure(self):
        plan = plan_transition(lead(S.PENDING_CLOSURE), BRANCH_MANAGER, S.PENDING_DISTRICT_APPROVAL)
        assert plan.status == S.PENDING_DISTRICT_APPROVAL
        assert plan.text == "Status changed to Pending District Approval by Branch Manager."

    def test_rework_needs_a_note(self):
        with pytest.raises(ReasonRequired):
            plan_transition(lead(S.PENDING_CLOSURE), BRANCH_MANAGER, S.REOPENED, "   ")

    def test_rework_with_note(self):
        plan = plan_transition(lead(S.PENDING_CLOSURE), BRANCH_MANAGER, S.REOPENED, "Missing signed mandate.")
        assert plan.kind == REWORK
        assert plan.status == S.REOPENED
        assert plan.text == "Missing signed mandate."

    def test_cannot_close(self):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.PENDING_DISTRICT_APPROVAL), BRANCH_MANAGER, S.CLOSED)

    def test_cannot_report_savings(self):
        with pytest.raises(InvalidTransition, match="savings"):
            plan_transition(
                lead(S.PENDING_CLOSURE), BRANCH_MANAGER, S.PENDING_DISTRICT_APPROVAL,
                generated_savings=100,
            )

    def test_other_branch_out_of_scope(self):
        with pytest.raises(InvalidTransition, match="outside your area"):
            plan_transition(lead(S.PENDING_CLOSURE, branch=SIBLING, officer=YVES), BRANCH_MANAGER,
                            S.PENDING_DISTRICT_APPROVAL)

    def test_cannot_assign_branch(self):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.ASSIGNED), BRANCH_MANAGER, branch=SIBLING)

    def test_manager_without_branch_has_no_scope(self):
        with pytest.raises(InvalidTransition, match="outside your area"):
            plan_transition(lead(S.PENDING_CLOSURE), Actor.branch_manager(), S.PENDING_DISTRICT_APPROVAL)


# ---------------------------------------------------------------------------
# District manager
# ---------------------------------------------------------------------------

class TestDistrictManager:
    def test_assign_branch(self):
        plan = plan_transition(lead(S.NEW), DISTRICT_MANAGER, branch=BRANCH)
        assert plan.kind == ASSIGN_BRANCH
        assert plan.status == S.ASSIGNED
        assert plan.branch is BRANCH
        assert plan.text == "Assigned to branch Akwa."

    def test_branch_from_another_district_refused(self):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.NEW), DISTRICT_MANAGER, branch=FAR_BRANCH)

    def test_lead_already_has_a_branch(self):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.ASSIGNED), DISTRICT_MANAGER, branch=SIBLING)

    def test_final_approval(self):
        plan = plan_transition(lead(S.PENDING_DISTRICT_APPROVAL), DISTRICT_MANAGER, S.CLOSED)
        assert plan.status == S.CLOSED
        assert plan.text == "Status changed to Closed by District Manager."

    def test_rework_needs_a_note(self):
        with pytest.raises(ReasonRequired):
            plan_transition(lead(S.PENDING_DISTRICT_APPROVAL), DISTRICT_MANAGER, S.REOPENED)

    def test_rework_with_note(self):
        plan = plan_transition(lead(S.PENDING_DISTRICT_APPROVAL), DISTRICT_MANAGER, S.REOPENED, "Figures do not add up.")
        assert plan.status == S.REOPENED

    def test_cannot_skip_branch_approval(self):
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.PENDING_CLOSURE), DISTRICT_MANAGER, S.CLOSED)

    def test_other_district_out_of_scope(self):
        foreign = Actor.district_manager(OTHER_DISTRICT)
        with pytest.raises(InvalidTransition):
            plan_transition(lead(S.PENDING_DISTRICT_APPROVAL), foreign, S.CLOSED)

    def test_unscoped_admin_may_act_anywhere(self):
        plan = plan_transition(lead(S.PENDING_DISTRICT_APPROVAL), ADMIN, S.CLOSED)
        assert plan.status == S.CLOSED


# ---------------------------------------------------------------------------
# Cross-cutting rules
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("actor", [OFFICER, BRANCH_MANAGER, DISTRICT_MANAGER, ADMIN])
@pytest.mark.parametrize("target", list(S))
def test_closed_lead_is_terminal(actor, target):
    with pytest.raises(InvalidTransition):
        plan_transition(lead(S.CLOSED), actor, target, "Please reopen")


def test_closed_lead_refuses_assignments():
    with pytest.raises(InvalidTransition):
        plan_transition(lead(S.CLOSED), BRANCH_MANAGER, officer=PAUL)


def test_unknown_role_refused():
    stranger = Actor(role="AUDITOR", display_name="Auditor")
    with pytest.raises(InvalidTransition):
        plan_transition(lead(S.IN_PROGRESS), stranger, S.PENDING_CLOSURE)


def test_missing_actor_refused():
    with pytest.raises(InvalidTransition):
        plan_transition(lead(S.IN_PROGRESS), None, S.PENDING_CLOSURE)


def test_unknown_status_refused():
    with pytest.raises(InvalidTransition):
        plan_transition(lead(S.IN_PROGRESS), OFFICER, "ARCHIVED")


def test_plan_does_not_touch_the_lead():
    item = lead(S.PENDING_CLOSURE)
    plan_transition(item, BRANCH_MANAGER, S.PENDING_DISTRICT_APPROVAL)
    assert item.status == S.PENDING_CLOSURE


@pytest.mark.parametrize("status", list(S))
@pytest.mark.parametrize("actor", [OFFICER, BRANCH_MANAGER, DISTRICT_MANAGER])
def test_every_available_action_follows_the_graph(status, actor):
    for target in allowed_transitions(lead(status), actor):
        assert target in GRAPH[status]


def test_allowed_transitions_per_role():
    assert allowed_transitions(lead(S.NEW), DISTRICT_MANAGER) == [S.ASSIGNED]
    assert allowed_transitions(lead(S.ASSIGNED), BRANCH_MANAGER) == [S.IN_PROGRESS]
    assert set(allowed_transitions(lead(S.PENDING_CLOSURE), BRANCH_MANAGER)) == {
        S.PENDING_DISTRICT_APPROVAL, S.REOPENED,
    }
    assert set(allowed_transitions(lead(S.IN_PROGRESS), OFFICER)) == {S.IN_PROGRESS, S.PENDING_CLOSURE}
    assert allowed_transitions(lead(S.CLOSED), DISTRICT_MANAGER) == []
    assert allowed_transitions(lead(S.IN_PROGRESS), None) == []


# ---------------------------------------------------------------------------
# Assignment invariant
# ---------------------------------------------------------------------------

class TestCheckAssignment:
    def test_consistent(self):
        assert check_assignment(DISTRICT, BRANCH, ADA) is None
        assert check_assignment(DISTRICT, BRANCH, None) is None
        assert check_assignment(DISTRICT, None, None) is None

    def test_officer_without_branch(self):
        assert "has a branch" in check_assignment(DISTRICT, None, ADA)

    def test_officer_outside_branch(self):
        assert "does not belong" in check_assignment(DISTRICT, SIBLING, ADA)

    def test_branch_outside_district(self):
        assert "does not belong" in check_assignment(DISTRICT, FAR_BRANCH, None)
