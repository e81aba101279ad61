"""Command-line interface for the compliance alerts service."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from packages.backend_client import BackendClient, BackendClientError, Credentials

from services.alerts.aggregator import LOAD_FAILED_MESSAGE, AlertsAggregator, AlertsLoadError, AlertsResult
from services.alerts.config import DEFAULT_CONFIG_PATH, AlertsConfig, load_config
from services.alerts.records import SECTION_TITLES, RecordKind

ROOT = Path(__file__).resolve().parents[2]
_RISK_MARKERS = {"overdue": "!!", "near_due": " !", "normal": "  "}


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")


def _load_config(path: Path) -> AlertsConfig:
    if not path.exists():
        logging.getLogger("revlogix.alerts.runner").warning("Configuration file %s not found; using defaults", path)
    return load_config(path)


def _parse_today(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}; expected YYYY-MM-DD") from exc


def _build_aggregator(config: AlertsConfig, token: Optional[str], logger: logging.Logger) -> AlertsAggregator:
    resolved = token or config.backend.token
    if not resolved:
        raise BackendClientError("No API token configured; set REVLOGIX_API_TOKEN or pass --token")
    client = BackendClient(
        config.backend.url,
        Credentials(resolved),
        timeout=config.backend.timeout_seconds,
        logger=logger.getChild("backend"),
    )
    return AlertsAggregator(
        client,
        endpoints=config.backend.endpoints,
        thresholds=config.thresholds,
        logger=logger.getChild("aggregator"),
    )


def _load(args: argparse.Namespace) -> Optional[AlertsResult]:
    load_dotenv(ROOT / ".env")
    config_path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH
    config = _load_config(config_path)

    _configure_logging(config.log_level)
    logger = logging.getLogger("revlogix.alerts.runner")

    try:
        aggregator = _build_aggregator(config, args.token, logger)
        try:
            return aggregator.load(today=args.today)
        finally:
            aggregator.close()
    except BackendClientError:
        logger.exception("Alerts load failed due to backend configuration error")
    except AlertsLoadError:
        logger.exception("Alerts load failed")
    print(LOAD_FAILED_MESSAGE, file=sys.stderr)
    return None


def cmd_list(args: argparse.Namespace) -> int:
    result = _load(args)
    if result is None:
        return 1
    print(render_text(result))
    return 0


def cmd_json(args: argparse.Namespace) -> int:
    result = _load(args)
    if result is None:
        return 1
    print(json.dumps(result.to_dict(), indent=2, sort_keys=True))
    return 0


def render_text(result: AlertsResult) -> str:
    """Plain-text rendering of the three alert sections."""

    lines = [f"Alerts as of {result.today.isoformat()}"]
    for kind in RecordKind:
        rows = result.rows(kind)
        lines.append("")
        lines.append(f"{SECTION_TITLES[kind]} ({len(rows)})")
        if not rows:
            lines.append("  No alerts.")
            continue
        for row in rows:
            record = row.record
            marker = _RISK_MARKERS[row.risk_level.value]
            due = record.due_date.isoformat() if record.due_date else "-"
            if record.days_past_due is not None:
                offset = f"{record.days_past_due}d past due"
            elif record.days_to_due is not None:
                offset = f"{record.days_to_due}d to due"
            else:
                offset = "-"
            lines.append(
                f"{marker} #{record.id} {record.type_label or '-'} | {record.reference_name or '-'} | due={due} ({offset})"
            )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Compliance alerts tracker")
    parser.add_argument("command", choices=["list", "json"], help="Command to execute")
    parser.add_argument(
        "-c",
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to alerts config file (default: %(default)s)",
    )
    parser.add_argument(
        "--today",
        type=_parse_today,
        default=None,
        help="Evaluate alerts as of this date (YYYY-MM-DD, default: current UTC date)",
    )
    parser.add_argument("--token", default=None, help="Bearer token overriding REVLOGIX_API_TOKEN")
    args = parser.parse_args(argv)

    if args.command == "list":
        return cmd_list(args)
    if args.command == "json":
        return cmd_json(args)
    parser.error(f"Unknown command {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
