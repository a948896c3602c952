from datetime import date, timedelta
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from accounts.models import User
from accounts.services import Actor
from branches.models import Branch, District, Officer
from leads.models import LeadUpdate, SalesLead
from plans.models import BranchPlan

# Douala city centre; the lead's fixed target location.
LEAD_LAT = 4.0511
LEAD_LNG = 9.7679


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

@pytest.fixture
def district(db):
    return District.objects.create(name="Littoral", code="LIT")


@pytest.fixture
def other_district(db):
    return District.objects.create(name="Centre", code="CEN")


@pytest.fixture
def branch(district):
    return Branch.objects.create(name="Akwa", code="AKW", district=district)


@pytest.fixture
def sibling_branch(district):
    return Branch.objects.create(name="Bonapriso", code="BNP", district=district)


@pytest.fixture
def far_branch(other_district):
    return Branch.objects.create(name="Bastos", code="BST", district=other_district)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="admin@test.com",
        password="testpass123",
        first_name="Admin",
        last_name="User",
        role=User.Role.ADMIN,
    )


@pytest.fixture
def district_manager_user(district):
    return User.objects.create_user(
        email="district@test.com",
        password="testpass123",
        first_name="Dora",
        last_name="District",
        role=User.Role.DISTRICT_MANAGER,
        district=district,
    )


@pytest.fixture
def branch_manager_user(branch):
    return User.objects.create_user(
        email="branch@test.com",
        password="testpass123",
        first_name="Bruno",
        last_name="Branch",
        role=User.Role.BRANCH_MANAGER,
        district=branch.district,
        branch=branch,
    )


@pytest.fixture
def officer_user(db):
    return User.objects.create_user(
        email="officer@test.com",
        password="testpass123",
        first_name="Ada",
        last_name="Mbarga",
        role=User.Role.OFFICER,
    )


@pytest.fixture
def officer(branch, officer_user):
    return Officer.objects.create(name="Ada Mbarga", branch=branch, user=officer_user)


@pytest.fixture
def other_officer(branch):
    return Officer.objects.create(name="Paul Essomba", branch=branch)


@pytest.fixture
def far_officer(far_branch):
    return Officer.objects.create(name="Yves Nkodo", branch=far_branch)


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------

@pytest.fixture
def officer_actor(officer):
    return Actor.officer(officer)


@pytest.fixture
def branch_actor(branch):
    return Actor.branch_manager(branch)


@pytest.fixture
def district_actor(district):
    return Actor.district_manager(district)


# ---------------------------------------------------------------------------
# Leads & plans
# ---------------------------------------------------------------------------

@pytest.fixture
def make_lead(district):
    """Create a lead directly in a given state, bypassing the workflow."""

    def _make(status=SalesLead.Status.NEW, branch=None, officer=None, expected=Decimal("50000"), **extra):
        if officer is not None and branch is None:
            branch = officer.branch
        return SalesLead.objects.create(
            title=extra.pop("title", "Payroll account migration"),
            description=extra.pop("description", "Move the payroll of a 200-staff company to us."),
            district=extra.pop("district", district),
            branch=branch,
            officer=officer,
            status=status,
            latitude=extra.pop("latitude", LEAD_LAT),
            longitude=extra.pop("longitude", LEAD_LNG),
            expected_savings=expected,
            deadline=extra.pop("deadline", date.today() + timedelta(days=90)),
            **extra,
        )

    return _make


@pytest.fixture
def new_lead(make_lead):
    return make_lead()


@pytest.fixture
def assigned_lead(make_lead, branch):
    return make_lead(SalesLead.Status.ASSIGNED, branch=branch)


@pytest.fixture
def in_progress_lead(make_lead, officer):
    return make_lead(SalesLead.Status.IN_PROGRESS, officer=officer)


@pytest.fixture
def pending_closure_lead(make_lead, officer):
    return make_lead(SalesLead.Status.PENDING_CLOSURE, officer=officer)


@pytest.fixture
def pending_district_lead(make_lead, officer):
    return make_lead(SalesLead.Status.PENDING_DISTRICT_APPROVAL, officer=officer)


@pytest.fixture
def closed_lead(make_lead, officer):
    return make_lead(SalesLead.Status.CLOSED, officer=officer)


@pytest.fixture
def add_update():
    """Append a raw update to a lead, bypassing the workflow."""
    from django.utils import timezone

    def _add(lead, savings=None, location=None, when=None, text="Progress", author="Ada Mbarga"):
        return LeadUpdate.objects.create(
            lead=lead,
            text=text,
            timestamp=when or timezone.now(),
            author=author,
            status=lead.status,
            generated_savings=savings,
            reporting_latitude=location[0] if location else None,
            reporting_longitude=location[1] if location else None,
        )

    return _add


@pytest.fixture
def plan(branch):
    return BranchPlan.objects.create(branch=branch, quarter="Q3 2024", savings_target=Decimal("250000"))


# ---------------------------------------------------------------------------
# API clients
# ---------------------------------------------------------------------------

@pytest.fixture
def api_client():
    return APIClient()


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def district_client(district_manager_user):
    return _client_for(district_manager_user)


@pytest.fixture
def branch_client(branch_manager_user):
    return _client_for(branch_manager_user)


@pytest.fixture
def officer_client(officer):
    return _client_for(officer.user)
