"""Compliance alerts: expiring documents, certifications and late scheduled reports."""

from .aggregator import (
    DEFAULT_ENDPOINTS,
    LOAD_FAILED_MESSAGE,
    AlertsAggregator,
    AlertsLoadError,
    AlertsResult,
    aggregate,
    build_alert_rows,
)
from .config import DEFAULT_CONFIG_PATH, AlertsConfig, BackendSettings, PermissionSettings, load_config
from .records import SECTION_TITLES, RecordKind, TrackedRecord, extract_items, normalize_collection, normalize_record
from .rules import (
    DEFAULT_THRESHOLDS,
    AlertRow,
    AlertThresholds,
    RiskLevel,
    classify_risk,
    filter_alerts,
    sort_alerts,
)
from .windows import DayWindow, evaluate, parse_date

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_ENDPOINTS",
    "DEFAULT_THRESHOLDS",
    "LOAD_FAILED_MESSAGE",
    "SECTION_TITLES",
    "AlertRow",
    "AlertThresholds",
    "AlertsAggregator",
    "AlertsConfig",
    "AlertsLoadError",
    "AlertsResult",
    "BackendSettings",
    "DayWindow",
    "PermissionSettings",
    "RecordKind",
    "RiskLevel",
    "TrackedRecord",
    "aggregate",
    "build_alert_rows",
    "classify_risk",
    "evaluate",
    "extract_items",
    "filter_alerts",
    "load_config",
    "normalize_collection",
    "normalize_record",
    "parse_date",
    "sort_alerts",
]
