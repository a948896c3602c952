"""Detection of status updates reported away from the lead's location."""
from __future__ import annotations

from dataclasses import dataclass

from reports.geo import haversine_distance_km

DEFAULT_THRESHOLD_KM = 1.0


@dataclass(frozen=True)
class OffsiteReport:
    lead: object
    update: object
    distance_km: float


def is_offsite(lead_location, reported_location, threshold_km: float) -> bool:
    """True when *reported_location* is strictly farther than *threshold_km*.

    A report exactly on the threshold counts as on-site.
    """
    return haversine_distance_km(lead_location, reported_location) > threshold_km


def validate_threshold(threshold_km) -> float:
    """Return *threshold_km* as a float; raise ``ValueError`` unless it is positive."""
    try:
        value = float(threshold_km)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid threshold: {threshold_km!r}") from None
    if not value > 0 or value == float("inf"):
        raise ValueError("The off-site threshold must be a positive number of kilometres.")
    return value


class OffsiteScan:
    """Lazy, restartable iterable of :class:`OffsiteReport`.

    Every iteration rescans *leads*; updates are visited most recent first
    and distances are computed only as the consumer advances.
    """

    def __init__(self, leads, threshold_km: float = DEFAULT_THRESHOLD_KM):
        self.leads = leads
        self.threshold_km = validate_threshold(threshold_km)

    def _candidates(self):
        pairs = [
            (lead, update)
            for lead in self.leads
            for update in lead.updates
            if update.reporting_location is not None
        ]
        pairs.sort(key=lambda pair: pair[1].timestamp, reverse=True)
        return pairs

    def __iter__(self):
        for lead, update in self._candidates():
            distance = haversine_distance_km(lead.location, update.reporting_location)
            if distance > self.threshold_km:
                yield OffsiteReport(lead=lead, update=update, distance_km=distance)


def scan_offsite_reports(leads, threshold_km: float = DEFAULT_THRESHOLD_KM) -> OffsiteScan:
    return OffsiteScan(leads, threshold_km)
