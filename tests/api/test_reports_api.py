from decimal import Decimal

import pytest

from reports.models import ReportingSettings

DASHBOARD_URL = "/api/v1/reports/dashboard/"
OFFSITE_URL = "/api/v1/reports/offsite/"
SETTINGS_URL = "/api/v1/reports/settings/"

FAR_AWAY = (4.1011, 9.7679)


@pytest.fixture
def tracked_lead(in_progress_lead, add_update):
    add_update(in_progress_lead, savings=Decimal("25000"), location=FAR_AWAY, text="Called from home")
    return in_progress_lead


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_dashboard_totals(district_client, tracked_lead):
    response = district_client.get(DASHBOARD_URL)

    assert response.status_code == 200
    assert response.data["totals"] == {
        "lead_count": 1,
        "expected": "50000.00",
        "generated": "25000.00",
        "achievement": "50.00",
    }
    assert len(response.data["leads_by_status"]) == 7
    assert response.data["leads_by_status"]["IN_PROGRESS"] == 1
    assert [row["name"] for row in response.data["branch_performance"]] == ["Akwa"]


@pytest.mark.django_db
def test_dashboard_all_filter(district_client, tracked_lead):
    response = district_client.get(DASHBOARD_URL, {"district": "all", "branch": "all"})

    assert response.data["filters"] == {"district": None, "branch": None}
    assert response.data["totals"]["lead_count"] == 1


@pytest.mark.django_db
def test_dashboard_branch_choices_follow_district(admin_client, branch, sibling_branch, far_branch):
    response = admin_client.get(DASHBOARD_URL, {"district": str(branch.district_id), "branch": str(far_branch.pk)})

    assert response.data["filters"]["branch"] is None
    assert [b["name"] for b in response.data["branch_choices"]] == ["Akwa", "Bonapriso"]


@pytest.mark.django_db
def test_dashboard_csv(district_client, tracked_lead):
    response = district_client.get(f"{DASHBOARD_URL}?format=csv&level=district")

    assert response.status_code == 200
    assert response["Content-Type"].startswith("text/csv")
    assert 'filename="district_performance.csv"' in response["Content-Disposition"]
    assert "Littoral,1,50000.00,25000.00,50.00" in response.content.decode("utf-8-sig")


# ---------------------------------------------------------------------------
# Off-site reports
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_offsite_list(district_client, tracked_lead):
    response = district_client.get(OFFSITE_URL)

    assert response.status_code == 200
    assert response.data["threshold_km"] == 1.0
    (report,) = response.data["results"]
    assert report["text"] == "Called from home"
    assert report["officer_name"] == "Ada Mbarga"
    assert report["distance_km"] == pytest.approx(5.56, abs=0.01)


@pytest.mark.django_db
def test_offsite_threshold_parameter(district_client, tracked_lead):
    response = district_client.get(OFFSITE_URL, {"threshold": "10"})
    assert response.data["results"] == []


@pytest.mark.django_db
def test_offsite_invalid_threshold(district_client):
    response = district_client.get(OFFSITE_URL, {"threshold": "-1"})

    assert response.status_code == 400
    assert response.data["code"] == "INVALID_THRESHOLD"


@pytest.mark.django_db
def test_offsite_csv(district_client, tracked_lead):
    response = district_client.get(f"{OFFSITE_URL}?format=csv")

    assert response.status_code == 200
    assert 'filename="offsite_reports.csv"' in response["Content-Disposition"]
    assert "Called from home" in response.content.decode("utf-8-sig")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_settings_readable_by_staff(officer_client):
    response = officer_client.get(SETTINGS_URL)

    assert response.status_code == 200
    assert response.data == {"offsite_threshold_km": 1.0}


@pytest.mark.django_db
def test_admin_updates_threshold(admin_client):
    response = admin_client.patch(SETTINGS_URL, {"offsite_threshold_km": 2.5}, format="json")

    assert response.status_code == 200
    assert ReportingSettings.current_threshold() == 2.5


@pytest.mark.django_db
def test_non_admin_cannot_update_threshold(district_client):
    response = district_client.patch(SETTINGS_URL, {"offsite_threshold_km": 2.5}, format="json")
    assert response.status_code == 403


@pytest.mark.django_db
def test_threshold_must_be_positive(admin_client):
    response = admin_client.patch(SETTINGS_URL, {"offsite_threshold_km": 0}, format="json")

    assert response.status_code == 400
    assert not ReportingSettings.objects.exists()


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_audit_log_admin_only(admin_client, district_client):
    admin_client.patch(SETTINGS_URL, {"offsite_threshold_km": 2.5}, format="json")

    response = admin_client.get("/api/v1/audit-logs/")
    assert response.status_code == 200
    assert response.data["results"][0]["action"] == "settings.offsite_threshold"

    assert district_client.get("/api/v1/audit-logs/").status_code == 403
