"""Normalize loosely typed backend payloads into tracked compliance records."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from services.alerts.windows import day_delta, evaluate, parse_date


class RecordKind(str, Enum):
    """The three record collections that feed the alerts worklist."""

    DOCUMENT = "document"
    CERTIFICATION = "certification"
    REPORT = "report"

    @property
    def collection(self) -> str:
        return _COLLECTION_NAMES[self]


_COLLECTION_NAMES = {
    RecordKind.DOCUMENT: "documents",
    RecordKind.CERTIFICATION: "certifications",
    RecordKind.REPORT: "reports",
}

SECTION_TITLES = {
    RecordKind.DOCUMENT: "Documents Tracker Alerts",
    RecordKind.CERTIFICATION: "Certifications Tracker Alerts",
    RecordKind.REPORT: "Reports Tracker Alerts",
}

# Output keys per kind: (type label, reference name, start date, due date,
# days to due, days past due).
_OUTPUT_KEYS: Dict[RecordKind, tuple[str, str, str, str, str, str]] = {
    RecordKind.DOCUMENT: (
        "document_type",
        "filename",
        "issue_date",
        "expiration_date",
        "days_to_expiration",
        "days_past_expiration",
    ),
    RecordKind.CERTIFICATION: (
        "certification_type",
        "filename",
        "issue_date",
        "expiration_date",
        "days_to_expiration",
        "days_past_expiration",
    ),
    RecordKind.REPORT: (
        "report_type",
        "name",
        "last_run_date",
        "next_run_date",
        "days_to_next_run",
        "days_past_next_run",
    ),
}


@dataclass
class TrackedRecord:
    """A document, certification or scheduled report with its due-date offsets."""

    kind: RecordKind
    id: int
    type_label: str
    reference_name: str
    start_date: Optional[date]
    due_date: Optional[date]
    days_to_due: Optional[int] = None
    days_past_due: Optional[int] = None
    days_since_last_run: Optional[int] = None

    def to_dict(self) -> dict[str, object]:
        type_key, name_key, start_key, due_key, to_key, past_key = _OUTPUT_KEYS[self.kind]
        payload: dict[str, object] = {
            "id": self.id,
            type_key: self.type_label,
            name_key: self.reference_name,
            start_key: self.start_date.isoformat() if self.start_date else None,
            due_key: self.due_date.isoformat() if self.due_date else None,
            to_key: self.days_to_due,
            past_key: self.days_past_due,
        }
        if self.kind is RecordKind.REPORT:
            payload["days_since_last_run"] = self.days_since_last_run
        return payload


def extract_items(payload: Any) -> List[Any]:
    """Return the entries of a bare JSON list or an ``{"items": [...]}`` envelope."""

    if isinstance(payload, list):
        return list(payload)
    if isinstance(payload, Mapping):
        items = payload.get("items")
        if isinstance(items, list):
            return list(items)
    return []


def normalize_collection(payload: Any, kind: RecordKind, today: date) -> List[TrackedRecord]:
    """Normalize every entry of a raw collection payload for ``kind``."""

    entries = extract_items(payload)
    if kind is RecordKind.REPORT:
        entries = [entry for entry in entries if _is_active(entry)]
    return [normalize_record(entry, kind, today) for entry in entries]


def normalize_record(raw: Any, kind: RecordKind, today: date) -> TrackedRecord:
    """Map a single raw entry onto the canonical record shape without raising."""

    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    return _NORMALIZERS[kind](data, today)


def _normalize_document(data: Mapping[str, Any], today: date) -> TrackedRecord:
    return _expiring_record(RecordKind.DOCUMENT, data, _coerce_str(data.get("documentType")), today)


def _normalize_certification(data: Mapping[str, Any], today: date) -> TrackedRecord:
    return _expiring_record(RecordKind.CERTIFICATION, data, _coerce_str(data.get("certificationType")), today)


def _normalize_report(data: Mapping[str, Any], today: date) -> TrackedRecord:
    last_run = _coerce_date(data.get("lastRunDate"))
    next_run = _coerce_date(data.get("nextRunDate"))
    window = evaluate(today, next_run)
    return TrackedRecord(
        kind=RecordKind.REPORT,
        id=_coerce_id(data.get("id")),
        type_label=_coerce_str(data.get("reportType")),
        reference_name=_coerce_str(data.get("name")),
        start_date=last_run,
        due_date=next_run,
        days_to_due=window.days_to_due,
        days_past_due=window.days_past_due,
        days_since_last_run=day_delta(last_run, today) if last_run else None,
    )


def _expiring_record(kind: RecordKind, data: Mapping[str, Any], type_label: str, today: date) -> TrackedRecord:
    expiration = _coerce_date(data.get("expirationDate"))
    window = evaluate(today, expiration)
    filename = data.get("fileName")
    if not isinstance(filename, str):
        filename = data.get("filename")
    return TrackedRecord(
        kind=kind,
        id=_coerce_id(data.get("id")),
        type_label=type_label,
        reference_name=_coerce_str(filename),
        start_date=_coerce_date(data.get("issueDate")),
        due_date=expiration,
        days_to_due=window.days_to_due,
        days_past_due=window.days_past_due,
    )


_NORMALIZERS: Dict[RecordKind, Callable[[Mapping[str, Any], date], TrackedRecord]] = {
    RecordKind.DOCUMENT: _normalize_document,
    RecordKind.CERTIFICATION: _normalize_certification,
    RecordKind.REPORT: _normalize_report,
}


def _is_active(entry: Any) -> bool:
    if not isinstance(entry, Mapping):
        return True
    flag = entry.get("isActive")
    return flag if isinstance(flag, bool) else True


def _coerce_id(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return 0
        return int(number) if math.isfinite(number) else 0
    return 0


def _coerce_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _coerce_date(value: Any) -> Optional[date]:
    # Only ISO strings are accepted from the wire; other types mean "not set".
    if not isinstance(value, str):
        return None
    return parse_date(value)


__all__ = [
    "RecordKind",
    "SECTION_TITLES",
    "TrackedRecord",
    "extract_items",
    "normalize_collection",
    "normalize_record",
]
