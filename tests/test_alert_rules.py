from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from services.alerts.records import RecordKind, TrackedRecord, normalize_record
from services.alerts.rules import AlertThresholds, RiskLevel, classify_risk, filter_alerts, sort_alerts

TODAY = date(2024, 5, 1)


def _document(record_id: int, offset: Optional[int]) -> TrackedRecord:
    raw = {"id": record_id, "documentType": "Permit"}
    if offset is not None:
        raw["expirationDate"] = (TODAY + timedelta(days=offset)).isoformat()
    return normalize_record(raw, RecordKind.DOCUMENT, TODAY)


def _report(record_id: int, offset: Optional[int]) -> TrackedRecord:
    raw = {"id": record_id, "reportType": "Monthly", "name": f"Report {record_id}"}
    if offset is not None:
        raw["nextRunDate"] = (TODAY + timedelta(days=offset)).isoformat()
    return normalize_record(raw, RecordKind.REPORT, TODAY)


def test_document_window_is_thirty_days_inclusive() -> None:
    rows = [_document(1, 30), _document(2, 31), _document(3, -400), _document(4, None)]

    kept = filter_alerts(rows, RecordKind.DOCUMENT)

    assert [row.id for row in kept] == [1, 3]


def test_window_honours_configured_threshold() -> None:
    rows = [_document(1, 10), _document(2, 11)]

    kept = filter_alerts(rows, RecordKind.CERTIFICATION, AlertThresholds(expiration_window_days=10))

    assert [row.id for row in kept] == [1]


def test_reports_surface_only_when_late() -> None:
    rows = [_report(1, -1), _report(2, 0), _report(3, 5), _report(4, None)]

    kept = filter_alerts(rows, RecordKind.REPORT)

    assert [row.id for row in kept] == [1]


def test_documents_sort_most_overdue_then_soonest_due() -> None:
    rows = [_document(1, 5), _document(2, -3), _document(3, 0), _document(4, -10), _document(5, 20)]

    ordered = sort_alerts(rows, RecordKind.DOCUMENT)

    assert [row.id for row in ordered] == [4, 2, 3, 1, 5]
    assert [row.id for row in rows] == [1, 2, 3, 4, 5]


def test_sort_is_idempotent_and_stable() -> None:
    rows = [_document(1, 5), _document(2, 5), _document(3, -1), _document(4, None)]

    once = sort_alerts(rows, RecordKind.DOCUMENT)
    twice = sort_alerts(once, RecordKind.DOCUMENT)

    assert [row.id for row in once] == [3, 1, 2, 4]
    assert [row.id for row in twice] == [row.id for row in once]


def test_reports_sort_by_days_past_due() -> None:
    rows = [_report(1, -2), _report(2, -9), _report(3, 4), _report(4, -5)]

    ordered = sort_alerts(rows, RecordKind.REPORT)

    assert [row.id for row in ordered] == [2, 4, 1, 3]


def test_document_risk_levels() -> None:
    assert classify_risk(_document(1, -5)) is RiskLevel.OVERDUE
    assert classify_risk(_document(2, 10)) is RiskLevel.NEAR_DUE
    assert classify_risk(_document(3, 14)) is RiskLevel.NEAR_DUE
    assert classify_risk(_document(4, 15)) is RiskLevel.NORMAL
    assert classify_risk(_document(5, 20)) is RiskLevel.NORMAL
    assert classify_risk(_document(6, 0)) is RiskLevel.NEAR_DUE


def test_report_risk_levels() -> None:
    assert classify_risk(_report(1, -8)) is RiskLevel.OVERDUE
    assert classify_risk(_report(2, -7)) is RiskLevel.NEAR_DUE
    assert classify_risk(_report(3, -3)) is RiskLevel.NEAR_DUE
    assert classify_risk(_report(4, 2)) is RiskLevel.NORMAL


def test_risk_highlights() -> None:
    assert RiskLevel.OVERDUE.highlight == "red"
    assert RiskLevel.NEAR_DUE.highlight == "green"
    assert RiskLevel.NORMAL.highlight == "neutral"
