"""Relevance window, urgency ordering and risk levels for tracked records."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Sequence

from services.alerts.records import RecordKind, TrackedRecord

NO_PAST_DUE_RANK = -1
NO_DAYS_TO_DUE_RANK = 99999


class RiskLevel(str, Enum):
    """Presentation-only urgency of an alert row."""

    OVERDUE = "overdue"
    NEAR_DUE = "near_due"
    NORMAL = "normal"

    @property
    def highlight(self) -> str:
        return _HIGHLIGHTS[self]


_HIGHLIGHTS = {
    RiskLevel.OVERDUE: "red",
    RiskLevel.NEAR_DUE: "green",
    RiskLevel.NORMAL: "neutral",
}


@dataclass(frozen=True)
class AlertThresholds:
    """Day thresholds that decide which records surface and how they are coloured."""

    expiration_window_days: int = 30
    near_due_days: int = 15
    report_overdue_days: int = 7


DEFAULT_THRESHOLDS = AlertThresholds()


@dataclass
class AlertRow:
    """A tracked record annotated with its risk level."""

    record: TrackedRecord
    risk_level: RiskLevel

    def to_dict(self) -> dict[str, object]:
        payload = self.record.to_dict()
        payload["risk_level"] = self.risk_level.value
        payload["highlight"] = self.risk_level.highlight
        return payload


def filter_alerts(
    rows: Iterable[TrackedRecord],
    kind: RecordKind,
    thresholds: AlertThresholds = DEFAULT_THRESHOLDS,
) -> List[TrackedRecord]:
    """Keep the records that fall inside the alerting window for ``kind``."""

    if kind is RecordKind.REPORT:
        return [row for row in rows if row.days_past_due is not None and row.days_past_due > 0]

    window = thresholds.expiration_window_days
    kept: List[TrackedRecord] = []
    for row in rows:
        if row.due_date is None:
            continue
        if row.days_past_due is not None or (row.days_to_due is not None and row.days_to_due <= window):
            kept.append(row)
    return kept


def sort_alerts(rows: Sequence[TrackedRecord], kind: RecordKind) -> List[TrackedRecord]:
    """Order records most overdue first, then soonest due; the input is left untouched."""

    if kind is RecordKind.REPORT:
        return sorted(rows, key=lambda row: -(row.days_past_due or 0))
    return sorted(
        rows,
        key=lambda row: (
            -(row.days_past_due if row.days_past_due is not None else NO_PAST_DUE_RANK),
            row.days_to_due if row.days_to_due is not None else NO_DAYS_TO_DUE_RANK,
        ),
    )


def classify_risk(record: TrackedRecord, thresholds: AlertThresholds = DEFAULT_THRESHOLDS) -> RiskLevel:
    past_due = record.days_past_due or 0
    if record.kind is RecordKind.REPORT:
        if past_due > thresholds.report_overdue_days:
            return RiskLevel.OVERDUE
        if past_due > 0:
            return RiskLevel.NEAR_DUE
        return RiskLevel.NORMAL

    if past_due > 0:
        return RiskLevel.OVERDUE
    days_to_due = record.days_to_due if record.days_to_due is not None else NO_DAYS_TO_DUE_RANK
    if days_to_due < thresholds.near_due_days:
        return RiskLevel.NEAR_DUE
    return RiskLevel.NORMAL


__all__ = [
    "AlertRow",
    "AlertThresholds",
    "DEFAULT_THRESHOLDS",
    "RiskLevel",
    "classify_risk",
    "filter_alerts",
    "sort_alerts",
]
