from io import StringIO

import pytest
from django.core.management import call_command

from accounts.models import User
from branches.models import Branch, District, Officer
from leads.models import SalesLead
from plans.models import BranchPlan, PlanEntry


def _seed(*args):
    out = StringIO()
    call_command("seed_data", *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
def test_seed_creates_reference_data_and_workflow():
    output = _seed()

    assert "Seed complete" in output
    assert District.objects.count() == 2
    assert Branch.objects.count() == 3
    assert Officer.objects.count() == 2
    assert User.objects.filter(role=User.Role.OFFICER).count() == 2
    assert set(SalesLead.objects.values_list("status", flat=True)) == {"NEW", "ASSIGNED", "IN_PROGRESS", "CLOSED"}
    assert BranchPlan.objects.count() == 2
    assert PlanEntry.objects.filter(status="REJECTED").exclude(rejection_reason="").count() == 2


@pytest.mark.django_db
def test_seed_is_idempotent():
    _seed()
    _seed()

    assert District.objects.count() == 2
    assert SalesLead.objects.count() == 4
    assert BranchPlan.objects.count() == 2


@pytest.mark.django_db
def test_seed_flush_and_reference_only():
    _seed()
    _seed("--flush", "--no-leads")

    assert not SalesLead.objects.exists()
    assert not BranchPlan.objects.exists()
    assert Branch.objects.count() == 3
    assert User.objects.count() == 5
