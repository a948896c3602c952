from datetime import datetime, timedelta, timezone

import pytest

from reports.geo import haversine_distance_km
from reports.offsite import OffsiteScan, is_offsite, scan_offsite_reports, validate_threshold
from reports.snapshots import LeadSnapshot, UpdateSnapshot

LEAD_AT = (4.0511, 9.7679)
# roughly 2.2 km north of the lead
NEARBY_TOWN = (4.0711, 9.7679)
BASE = datetime(2024, 8, 1, 9, 0, tzinfo=timezone.utc)


def update(uid, location, minutes=0):
    return UpdateSnapshot(
        id=uid,
        text=f"update {uid}",
        timestamp=BASE + timedelta(minutes=minutes),
        author="Ada Mbarga",
        status="IN_PROGRESS",
        reporting_location=location,
    )


def lead(*updates, location=LEAD_AT):
    return LeadSnapshot(
        id="lead",
        title="Payroll migration",
        status="IN_PROGRESS",
        district_id="D1",
        branch_id="B1",
        officer_id="O1",
        location=location,
        expected_savings=0,
        updates=tuple(updates),
    )


class TestIsOffsite:
    def test_same_place(self):
        assert not is_offsite(LEAD_AT, LEAD_AT, 1.0)

    def test_far_away(self):
        assert is_offsite(LEAD_AT, NEARBY_TOWN, 1.0)

    def test_exactly_on_threshold_is_onsite(self):
        distance = haversine_distance_km(LEAD_AT, NEARBY_TOWN)
        assert not is_offsite(LEAD_AT, NEARBY_TOWN, distance)

    def test_just_past_threshold_is_offsite(self):
        distance = haversine_distance_km(LEAD_AT, NEARBY_TOWN)
        assert is_offsite(LEAD_AT, NEARBY_TOWN, distance - 1e-9)

    def test_larger_threshold(self):
        assert not is_offsite(LEAD_AT, NEARBY_TOWN, 5.0)


class TestValidateThreshold:
    def test_numeric_string(self):
        assert validate_threshold("2.5") == 2.5

    @pytest.mark.parametrize("value", [0, -1, "abc", None, float("inf"), float("nan")])
    def test_rejected(self, value):
        with pytest.raises(ValueError):
            validate_threshold(value)


class TestScan:
    def test_flags_only_offsite_updates(self):
        leads = [lead(update(1, LEAD_AT), update(2, NEARBY_TOWN), update(3, None))]
        reports = list(scan_offsite_reports(leads, 1.0))
        assert [r.update.id for r in reports] == [2]
        assert reports[0].distance_km == pytest.approx(2.22, abs=0.01)
        assert reports[0].lead is leads[0]

    def test_most_recent_first(self):
        leads = [
            lead(update(1, NEARBY_TOWN, minutes=0), update(2, NEARBY_TOWN, minutes=30)),
            lead(update(3, NEARBY_TOWN, minutes=15)),
        ]
        assert [r.update.id for r in scan_offsite_reports(leads)] == [2, 3, 1]

    def test_restartable(self):
        scan = OffsiteScan([lead(update(1, NEARBY_TOWN))])
        assert len(list(scan)) == 1
        assert len(list(scan)) == 1

    def test_empty(self):
        assert list(scan_offsite_reports([])) == []

    def test_threshold_is_validated(self):
        with pytest.raises(ValueError):
            scan_offsite_reports([], 0)

    def test_threshold_exposed(self):
        assert scan_offsite_reports([], "3").threshold_km == 3.0
