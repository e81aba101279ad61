from __future__ import annotations

from pathlib import Path

import pytest

from packages.backend_client import DEFAULT_BACKEND_URL
from services.alerts import DEFAULT_CONFIG_PATH, RecordKind, load_config


def test_load_config_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.yaml", environ={})

    assert config.log_level == "INFO"
    assert config.backend.url == DEFAULT_BACKEND_URL
    assert config.backend.token is None
    assert config.backend.endpoints[RecordKind.REPORT] == "/api/ScheduledReports"
    assert config.thresholds.expiration_window_days == 30
    assert config.thresholds.near_due_days == 15
    assert config.thresholds.report_overdue_days == 7
    assert config.permissions.enforce is True


def test_bundled_config_matches_defaults() -> None:
    config = load_config(DEFAULT_CONFIG_PATH, environ={})

    assert config.backend.roles_path == "/api/admin/roles"
    assert config.backend.endpoints[RecordKind.DOCUMENT] == "/api/ComplianceTrackerDocuments"
    assert config.permissions.module == "ProjectManagement"
    assert config.permissions.action == "Read"


def test_load_config_parses_values(tmp_path: Path) -> None:
    config_text = """
    log_level: debug
    backend:
      url: https://staging.example.com
      timeout_seconds: 5
      endpoints:
        documents: /v2/documents
    thresholds:
      expiration_window_days: 45
      near_due_days: bogus
    permissions:
      enforce: false
    """
    config_path = tmp_path / "alerts.yaml"
    config_path.write_text(config_text, encoding="utf-8")

    config = load_config(config_path, environ={})

    assert config.log_level == "DEBUG"
    assert config.backend.url == "https://staging.example.com"
    assert config.backend.timeout_seconds == 5.0
    assert config.backend.endpoints[RecordKind.DOCUMENT] == "/v2/documents"
    assert config.backend.endpoints[RecordKind.CERTIFICATION] == "/api/ComplianceTrackerCertifications"
    assert config.thresholds.expiration_window_days == 45
    assert config.thresholds.near_due_days == 15
    assert config.permissions.enforce is False


def test_environment_overrides_file(tmp_path: Path) -> None:
    config_path = tmp_path / "alerts.yaml"
    config_path.write_text("backend:\n  url: https://file.example.com\n", encoding="utf-8")

    config = load_config(
        config_path,
        environ={"REVLOGIX_BACKEND_URL": "https://env.example.com", "REVLOGIX_API_TOKEN": "abc"},
    )

    assert config.backend.url == "https://env.example.com"
    assert config.backend.token == "abc"


def test_non_mapping_config_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "alerts.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(config_path, environ={})
