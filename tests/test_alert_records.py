from __future__ import annotations

from datetime import date

from services.alerts.records import RecordKind, extract_items, normalize_collection, normalize_record

TODAY = date(2024, 5, 1)


def test_malformed_document_coerces_to_defaults() -> None:
    record = normalize_record({"id": "7", "documentType": 42}, RecordKind.DOCUMENT, TODAY)

    assert record.id == 7
    assert record.type_label == ""
    assert record.reference_name == ""
    assert record.start_date is None
    assert record.due_date is None
    assert record.days_to_due is None
    assert record.days_past_due is None


def test_document_prefers_file_name_then_filename() -> None:
    camel = normalize_record({"id": 1, "fileName": "permit.pdf", "filename": "old.pdf"}, RecordKind.DOCUMENT, TODAY)
    lower = normalize_record({"id": 2, "fileName": None, "filename": "license.pdf"}, RecordKind.DOCUMENT, TODAY)

    assert camel.reference_name == "permit.pdf"
    assert lower.reference_name == "license.pdf"


def test_certification_maps_expiration_offsets() -> None:
    record = normalize_record(
        {
            "id": 3,
            "certificationType": "R2",
            "filename": "r2.pdf",
            "issueDate": "2023-05-01T00:00:00",
            "expirationDate": "2024-04-28",
        },
        RecordKind.CERTIFICATION,
        TODAY,
    )

    assert record.kind is RecordKind.CERTIFICATION
    assert record.type_label == "R2"
    assert record.start_date == date(2023, 5, 1)
    assert record.days_past_due == 3
    assert record.days_to_due is None
    assert record.to_dict()["certification_type"] == "R2"
    assert record.to_dict()["days_past_expiration"] == 3


def test_report_tracks_days_since_last_run() -> None:
    record = normalize_record(
        {
            "id": 9,
            "reportType": "EPA Quarterly",
            "name": "Q1 Filing",
            "lastRunDate": "2024-04-01",
            "nextRunDate": "2024-04-26",
        },
        RecordKind.REPORT,
        TODAY,
    )

    assert record.reference_name == "Q1 Filing"
    assert record.days_since_last_run == 30
    assert record.days_past_due == 5
    payload = record.to_dict()
    assert payload["days_past_next_run"] == 5
    assert payload["last_run_date"] == "2024-04-01"


def test_ids_that_cannot_be_numbers_become_zero() -> None:
    assert normalize_record({"id": "abc"}, RecordKind.DOCUMENT, TODAY).id == 0
    assert normalize_record({"id": None}, RecordKind.DOCUMENT, TODAY).id == 0
    assert normalize_record({"id": 12.0}, RecordKind.DOCUMENT, TODAY).id == 12
    assert normalize_record({}, RecordKind.DOCUMENT, TODAY).id == 0


def test_non_string_dates_are_treated_as_unset() -> None:
    record = normalize_record({"id": 1, "expirationDate": 20240501}, RecordKind.DOCUMENT, TODAY)
    garbled = normalize_record({"id": 2, "expirationDate": "someday"}, RecordKind.DOCUMENT, TODAY)

    assert record.due_date is None
    assert garbled.due_date is None


def test_extract_items_accepts_list_or_envelope() -> None:
    assert extract_items([{"id": 1}]) == [{"id": 1}]
    assert extract_items({"items": [{"id": 2}], "total": 1}) == [{"id": 2}]
    assert extract_items({"items": "nope"}) == []
    assert extract_items({"data": []}) == []
    assert extract_items("text") == []
    assert extract_items(None) == []


def test_non_mapping_entries_normalize_to_empty_records() -> None:
    records = normalize_collection([None, "x", {"id": 4}], RecordKind.DOCUMENT, TODAY)

    assert [record.id for record in records] == [0, 0, 4]


def test_inactive_reports_are_dropped_before_normalization() -> None:
    payload = {
        "items": [
            {"id": 1, "isActive": False},
            {"id": 2, "isActive": True},
            {"id": 3},
            {"id": 4, "isActive": "false"},
        ]
    }

    records = normalize_collection(payload, RecordKind.REPORT, TODAY)

    assert [record.id for record in records] == [2, 3, 4]
