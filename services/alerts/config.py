"""Configuration helpers for the compliance alerts service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

import yaml

from packages.backend_client import DEFAULT_BACKEND_URL
from services.alerts.aggregator import DEFAULT_ENDPOINTS
from services.alerts.records import RecordKind
from services.alerts.rules import AlertThresholds

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")
DEFAULT_ROLES_PATH = "/api/admin/roles"


@dataclass
class BackendSettings:
    """Where the backend lives and which resources hold each collection."""

    url: str = DEFAULT_BACKEND_URL
    token: Optional[str] = None
    timeout_seconds: float = 30.0
    endpoints: Dict[RecordKind, str] = field(default_factory=lambda: dict(DEFAULT_ENDPOINTS))
    roles_path: str = DEFAULT_ROLES_PATH

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "BackendSettings":
        if not data:
            return cls()
        defaults = cls()
        url = str(data.get("url") or defaults.url).strip() or defaults.url
        raw_token = data.get("token")
        token = str(raw_token) if raw_token not in (None, "") else None
        try:
            timeout = float(data.get("timeout_seconds", defaults.timeout_seconds))
        except (TypeError, ValueError):
            timeout = defaults.timeout_seconds
        if timeout <= 0:
            timeout = defaults.timeout_seconds

        endpoints = dict(defaults.endpoints)
        raw_endpoints = _get_mapping(data, "endpoints")
        for kind in RecordKind:
            value = raw_endpoints.get(kind.collection)
            if isinstance(value, str) and value.strip():
                endpoints[kind] = value.strip()
        roles_path = raw_endpoints.get("roles")
        if not isinstance(roles_path, str) or not roles_path.strip():
            roles_path = defaults.roles_path
        return cls(
            url=url,
            token=token,
            timeout_seconds=timeout,
            endpoints=endpoints,
            roles_path=roles_path.strip(),
        )


@dataclass
class PermissionSettings:
    """Permission required to view the alerts worklist."""

    enforce: bool = True
    module: str = "ProjectManagement"
    action: str = "Read"

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "PermissionSettings":
        if not data:
            return cls()
        enforce = data.get("enforce", cls.enforce)
        module = data.get("module")
        action = data.get("action")
        return cls(
            enforce=enforce if isinstance(enforce, bool) else cls.enforce,
            module=str(module) if module else cls.module,
            action=str(action) if action else cls.action,
        )


@dataclass
class AlertsConfig:
    """Top-level configuration for the alerts service."""

    log_level: str = "INFO"
    backend: BackendSettings = field(default_factory=BackendSettings)
    thresholds: AlertThresholds = field(default_factory=AlertThresholds)
    permissions: PermissionSettings = field(default_factory=PermissionSettings)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "AlertsConfig":
        log_level_value = data.get("log_level", cls.log_level)
        log_level = str(log_level_value).strip() or cls.log_level
        return cls(
            log_level=log_level.upper(),
            backend=BackendSettings.from_mapping(_get_mapping(data, "backend")),
            thresholds=_thresholds_from_mapping(_get_mapping(data, "thresholds")),
            permissions=PermissionSettings.from_mapping(_get_mapping(data, "permissions")),
        )

    def apply_env(self, environ: Mapping[str, str] | None = None) -> "AlertsConfig":
        """Let ``REVLOGIX_*`` environment variables override the file settings."""

        env = os.environ if environ is None else environ
        url = env.get("REVLOGIX_BACKEND_URL")
        if url:
            self.backend.url = url
        token = env.get("REVLOGIX_API_TOKEN")
        if token:
            self.backend.token = token
        level = env.get("REVLOGIX_LOG_LEVEL")
        if level:
            self.log_level = level.strip().upper()
        return self


def load_config(path: Path | None = None, *, environ: Mapping[str, str] | None = None) -> AlertsConfig:
    """Load alerts configuration from YAML, then apply environment overrides."""

    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return AlertsConfig().apply_env(environ)
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Alerts configuration must be a mapping")
    return AlertsConfig.from_mapping(data).apply_env(environ)


def _thresholds_from_mapping(data: Mapping[str, object]) -> AlertThresholds:
    defaults = AlertThresholds()
    values = {}
    for name in ("expiration_window_days", "near_due_days", "report_overdue_days"):
        raw = data.get(name, getattr(defaults, name))
        try:
            values[name] = max(0, int(raw))
        except (TypeError, ValueError):
            values[name] = getattr(defaults, name)
    return AlertThresholds(**values)


def _get_mapping(data: Mapping[str, object], key: str) -> MutableMapping[str, object]:
    value = data.get(key)
    if isinstance(value, Mapping):
        return dict(value)
    return {}


__all__ = [
    "AlertsConfig",
    "BackendSettings",
    "DEFAULT_CONFIG_PATH",
    "PermissionSettings",
    "load_config",
]
