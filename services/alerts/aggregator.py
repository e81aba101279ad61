"""Fetch the compliance collections and build the unified alerts worklist."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional

from packages.backend_client import BackendClient, BackendClientError
from services.alerts.records import RecordKind, normalize_collection
from services.alerts.rules import (
    DEFAULT_THRESHOLDS,
    AlertRow,
    AlertThresholds,
    RiskLevel,
    classify_risk,
    filter_alerts,
    sort_alerts,
)
from services.alerts.windows import utc_today

DEFAULT_ENDPOINTS: Mapping[RecordKind, str] = {
    RecordKind.DOCUMENT: "/api/ComplianceTrackerDocuments",
    RecordKind.CERTIFICATION: "/api/ComplianceTrackerCertifications",
    RecordKind.REPORT: "/api/ScheduledReports",
}
LOAD_FAILED_MESSAGE = "Failed to load alerts."

Clock = Callable[[], date]


class AlertsLoadError(RuntimeError):
    """Raised when any of the source collections could not be loaded."""

    def __init__(self, message: str = LOAD_FAILED_MESSAGE, *, kind: Optional[RecordKind] = None) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass
class AlertsResult:
    """Ordered alert rows for each collection as of ``today``."""

    today: date
    documents: List[AlertRow] = field(default_factory=list)
    certifications: List[AlertRow] = field(default_factory=list)
    reports: List[AlertRow] = field(default_factory=list)

    def rows(self, kind: RecordKind) -> List[AlertRow]:
        return getattr(self, kind.collection)

    def to_dict(self) -> dict[str, object]:
        return {
            "today": self.today.isoformat(),
            "documents": [row.to_dict() for row in self.documents],
            "certifications": [row.to_dict() for row in self.certifications],
            "reports": [row.to_dict() for row in self.reports],
            "meta": {
                "counts": {kind.collection: len(self.rows(kind)) for kind in RecordKind},
                "overdue": sum(
                    1 for kind in RecordKind for row in self.rows(kind) if row.risk_level is RiskLevel.OVERDUE
                ),
            },
        }


def build_alert_rows(
    payload: Any,
    kind: RecordKind,
    *,
    today: date,
    thresholds: AlertThresholds = DEFAULT_THRESHOLDS,
) -> List[AlertRow]:
    """Normalize, filter, sort and classify one raw collection."""

    records = normalize_collection(payload, kind, today)
    relevant = filter_alerts(records, kind, thresholds)
    ordered = sort_alerts(relevant, kind)
    return [AlertRow(record=record, risk_level=classify_risk(record, thresholds)) for record in ordered]


def aggregate(
    documents: Any,
    certifications: Any,
    reports: Any,
    *,
    today: date,
    thresholds: AlertThresholds = DEFAULT_THRESHOLDS,
) -> AlertsResult:
    """Build the alerts worklist from already-fetched collection payloads."""

    return AlertsResult(
        today=today,
        documents=build_alert_rows(documents, RecordKind.DOCUMENT, today=today, thresholds=thresholds),
        certifications=build_alert_rows(
            certifications, RecordKind.CERTIFICATION, today=today, thresholds=thresholds
        ),
        reports=build_alert_rows(reports, RecordKind.REPORT, today=today, thresholds=thresholds),
    )


class AlertsAggregator:
    """Load the three compliance collections from the backend and aggregate them."""

    def __init__(
        self,
        client: BackendClient,
        *,
        endpoints: Optional[Mapping[RecordKind, str]] = None,
        thresholds: AlertThresholds = DEFAULT_THRESHOLDS,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._endpoints = dict(DEFAULT_ENDPOINTS)
        if endpoints:
            self._endpoints.update(endpoints)
        self._thresholds = thresholds
        self._clock = clock or utc_today
        self._logger = logger or logging.getLogger("revlogix.alerts")

    def fetch_collections(self) -> Dict[RecordKind, Any]:
        """Fetch all collections concurrently; any failure fails the whole batch."""

        kinds = list(RecordKind)
        with ThreadPoolExecutor(max_workers=len(kinds)) as executor:
            futures = {kind: executor.submit(self._client.get_json, self._endpoints[kind]) for kind in kinds}
            payloads: Dict[RecordKind, Any] = {}
            for kind, future in futures.items():
                try:
                    payloads[kind] = future.result()
                except BackendClientError as exc:
                    self._logger.error("Failed to load %s: %s", kind.collection, exc)
                    raise AlertsLoadError(kind=kind) from exc
        return payloads

    def load(self, *, today: Optional[date] = None) -> AlertsResult:
        """Fetch the collections and return the aggregated alerts."""

        payloads = self.fetch_collections()
        as_of = today or self._clock()
        result = aggregate(
            payloads[RecordKind.DOCUMENT],
            payloads[RecordKind.CERTIFICATION],
            payloads[RecordKind.REPORT],
            today=as_of,
            thresholds=self._thresholds,
        )
        self._logger.info(
            "Alerts as of %s: %d documents, %d certifications, %d reports",
            as_of.isoformat(),
            len(result.documents),
            len(result.certifications),
            len(result.reports),
        )
        return result

    def close(self) -> None:
        self._client.close()


__all__ = [
    "AlertsAggregator",
    "AlertsLoadError",
    "AlertsResult",
    "DEFAULT_ENDPOINTS",
    "LOAD_FAILED_MESSAGE",
    "aggregate",
    "build_alert_rows",
]
