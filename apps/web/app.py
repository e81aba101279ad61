"""FastAPI application exposing the compliance alerts tracker."""
from __future__ import annotations

import html
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, Response
import requests
from jsonschema import Draft202012Validator
from pydantic import BaseModel

from packages.backend_client import BackendClient, BackendClientError, Credentials, relay_headers
from packages.permissions import has_permission, parse_roles, resolve_user_permissions
from services.alerts import (
    LOAD_FAILED_MESSAGE,
    SECTION_TITLES,
    AlertsAggregator,
    AlertsConfig,
    AlertsLoadError,
    AlertsResult,
    RecordKind,
    aggregate,
    load_config,
)
from services.alerts.windows import utc_today

ClientFactory = Callable[[Credentials], BackendClient]
Clock = Callable[[], date]

REPO_ROOT = Path(__file__).resolve().parents[2]
ALERTS_SCHEMA_PATH = REPO_ROOT / "contracts" / "schemas" / "alerts.schema.json"
try:
    _ALERTS_SCHEMA = json.loads(ALERTS_SCHEMA_PATH.read_text(encoding="utf-8"))
    _ALERTS_VALIDATOR: Optional[Draft202012Validator] = Draft202012Validator(_ALERTS_SCHEMA)
except (OSError, ValueError):
    _ALERTS_SCHEMA = None
    _ALERTS_VALIDATOR = None

PROXY_RESOURCES = {
    "documents": RecordKind.DOCUMENT,
    "certifications": RecordKind.CERTIFICATION,
    "reports": RecordKind.REPORT,
}
_DASHBOARD_COLUMNS = {
    RecordKind.DOCUMENT: (
        ("Document Type", "document_type"),
        ("Filename", "filename"),
        ("Issue Date", "issue_date"),
        ("Expiration Date", "expiration_date"),
        ("Days to Expiration", "days_to_expiration"),
        ("Days Past Expiration", "days_past_expiration"),
    ),
    RecordKind.CERTIFICATION: (
        ("Certification Type", "certification_type"),
        ("Filename", "filename"),
        ("Issue Date", "issue_date"),
        ("Expiration Date", "expiration_date"),
        ("Days to Expiration", "days_to_expiration"),
        ("Days Past Expiration", "days_past_expiration"),
    ),
    RecordKind.REPORT: (
        ("Report Type", "report_type"),
        ("Name", "name"),
        ("Last Run", "last_run_date"),
        ("Next Run", "next_run_date"),
        ("Days Since Last Run", "days_since_last_run"),
        ("Days Past Next Run", "days_past_next_run"),
    ),
}
_ROW_STYLES = {"red": "background:#fef2f2", "green": "background:#f0fdf4", "neutral": ""}


class AlertsEvaluatePayload(BaseModel):
    documents: Any = None
    certifications: Any = None
    reports: Any = None
    today: Optional[date] = None


class _AccessDenied(Exception):
    pass


def create_app(
    *,
    config: AlertsConfig | None = None,
    client_factory: ClientFactory | None = None,
    clock: Clock | None = None,
    logger: logging.Logger | None = None,
    session: requests.Session | None = None,
) -> FastAPI:
    """Construct the FastAPI application.

    Every backend client built by the default factory shares one HTTP session,
    which is closed when the application shuts down.
    """

    app_logger = logger or logging.getLogger("revlogix.web")
    settings = config or load_config()
    today_provider = clock or utc_today
    http_session = session or requests.Session()

    def _default_client(credentials: Credentials) -> BackendClient:
        return BackendClient(
            settings.backend.url,
            credentials,
            timeout=settings.backend.timeout_seconds,
            session=http_session,
            logger=app_logger.getChild("backend"),
        )

    make_client = client_factory or _default_client

    app = FastAPI(title="Compliance Alerts API")

    @app.on_event("shutdown")
    def _close_session() -> None:
        http_session.close()

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        app_logger.error("Unhandled application error", exc_info=exc)
        return JSONResponse(
            {"error": "internal", "detail": "see server logs"},
            status_code=500,
        )

    def _credentials_for(request: Request) -> Credentials:
        credentials = Credentials.from_header(request.headers.get("authorization"))
        # The service token stands in for the caller only while permissions are not enforced.
        if credentials is None and not settings.permissions.enforce and settings.backend.token:
            credentials = Credentials(settings.backend.token)
        if credentials is None:
            raise HTTPException(401, {"error": "unauthorized"})
        return credentials

    def _authorize(request: Request, client: BackendClient) -> None:
        policy = settings.permissions
        if not policy.enforce:
            return
        roles = parse_roles(request.headers.get("x-user-roles", ""))
        user = resolve_user_permissions(
            client,
            roles,
            roles_path=settings.backend.roles_path,
            logger=app_logger.getChild("permissions"),
        )
        if not has_permission(user, policy.module, policy.action):
            app_logger.info("Denied alerts access for roles %s", roles or "-")
            raise _AccessDenied()

    def _load_alerts(request: Request) -> AlertsResult:
        client = make_client(_credentials_for(request))
        _authorize(request, client)
        aggregator = AlertsAggregator(
            client,
            endpoints=settings.backend.endpoints,
            thresholds=settings.thresholds,
            clock=today_provider,
            logger=app_logger.getChild("alerts"),
        )
        return aggregator.load()

    @app.get("/", response_class=JSONResponse)
    def index() -> dict[str, object]:
        return {
            "app": "Compliance alerts API",
            "status": "ok",
            "links": {
                "health": "/health",
                "alerts": "/alerts",
                "alerts_evaluate": "/alerts/evaluate",
                "dashboard_alerts": "/dashboard/alerts",
                "documents": "/api/compliance-tracker/documents",
                "certifications": "/api/compliance-tracker/certifications",
                "reports": "/api/compliance-tracker/reports",
            },
        }

    @app.get("/health", response_class=JSONResponse)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/alerts", response_class=JSONResponse)
    def alerts(request: Request) -> JSONResponse:
        try:
            result = _load_alerts(request)
        except _AccessDenied:
            return JSONResponse({"error": "access_denied"}, status_code=403)
        except AlertsLoadError:
            app_logger.exception("Failed to load alerts")
            return JSONResponse({"error": LOAD_FAILED_MESSAGE}, status_code=502)
        return JSONResponse(_validated(result))

    @app.post("/alerts/evaluate", response_class=JSONResponse)
    def evaluate_alerts(payload: AlertsEvaluatePayload) -> dict[str, object]:
        result = aggregate(
            payload.documents,
            payload.certifications,
            payload.reports,
            today=payload.today or today_provider(),
            thresholds=settings.thresholds,
        )
        return _validated(result)

    @app.get("/dashboard/alerts", response_class=HTMLResponse)
    def dashboard_alerts(request: Request) -> HTMLResponse:
        try:
            result = _load_alerts(request)
        except _AccessDenied:
            return HTMLResponse(_render_dashboard(message="Access Denied"), status_code=403)
        except AlertsLoadError:
            app_logger.exception("Failed to load alerts for dashboard")
            return HTMLResponse(_render_dashboard(message=LOAD_FAILED_MESSAGE), status_code=502)
        return HTMLResponse(_render_dashboard(result=result))

    async def _proxy(request: Request, resource: str, suffix: str = "") -> Response:
        kind = PROXY_RESOURCES.get(resource)
        if kind is None:
            raise HTTPException(404, {"detail": "Not found"})
        authorization = request.headers.get("authorization", "")
        client = make_client(Credentials.from_header(authorization) or Credentials(""))
        body = await request.body()
        path = settings.backend.endpoints[kind] + suffix
        try:
            upstream = await run_in_threadpool(
                client.forward,
                request.method,
                path,
                authorization=authorization,
                params=request.query_params.multi_items(),
                body=body or None,
                content_type=request.headers.get("content-type"),
            )
        except BackendClientError:
            app_logger.exception("Proxy request to %s failed", path)
            raise HTTPException(502, {"error": "backend_unreachable"}) from None
        if request.method == "DELETE":
            return Response(status_code=upstream.status_code)
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            headers=dict(relay_headers(upstream)),
        )

    @app.api_route("/api/compliance-tracker/{resource}", methods=["GET", "POST"])
    async def proxy_collection(resource: str, request: Request) -> Response:
        return await _proxy(request, resource)

    @app.api_route("/api/compliance-tracker/{resource}/{record_id}", methods=["GET", "PATCH", "DELETE"])
    async def proxy_record(resource: str, record_id: str, request: Request) -> Response:
        return await _proxy(request, resource, f"/{record_id}")

    return app


def _validated(result: AlertsResult) -> dict[str, object]:
    payload = result.to_dict()
    if _ALERTS_VALIDATOR is not None:
        _ALERTS_VALIDATOR.validate(payload)
    return payload


def _render_dashboard(*, result: AlertsResult | None = None, message: str | None = None) -> str:
    lines: List[str] = [
        "<!DOCTYPE html>",
        "<html>",
        "  <head>",
        '    <meta charset="utf-8" />',
        "    <title>Alerts Tracker</title>",
        "    <style>",
        "      body { font-family: Helvetica, Arial, sans-serif; padding: 24px; }",
        "      table { border-collapse: collapse; width: 100%; margin-bottom: 32px; }",
        "      th, td { text-align: left; padding: 6px 12px; border-bottom: 1px solid #e5e7eb; }",
        "      th { font-size: 12px; text-transform: uppercase; color: #6b7280; background: #f9fafb; }",
        "      .error { color: #dc2626; }",
        "    </style>",
        "  </head>",
        "  <body>",
        "    <h1>Alerts Tracker</h1>",
    ]
    if result is None:
        lines.append(f'    <div class="error">{html.escape(message or LOAD_FAILED_MESSAGE)}</div>')
    else:
        lines.append(f"    <p>As of {result.today.isoformat()}</p>")
        for kind in RecordKind:
            lines.extend(_render_section(kind, result))
    lines.extend(["  </body>", "</html>"])
    return "\n".join(lines)


def _render_section(kind: RecordKind, result: AlertsResult) -> List[str]:
    columns = _DASHBOARD_COLUMNS[kind]
    lines = [
        "    <section>",
        f"      <h2>{html.escape(SECTION_TITLES[kind])}</h2>",
        "      <table>",
        "        <thead><tr>"
        + "".join(f"<th>{html.escape(title)}</th>" for title, _ in columns)
        + "</tr></thead>",
        "        <tbody>",
    ]
    rows = result.rows(kind)
    for row in rows:
        data = row.to_dict()
        style = _ROW_STYLES[row.risk_level.highlight]
        style_attr = f' style="{style}"' if style else ""
        cells = "".join(f"<td>{html.escape(_display(data.get(key)))}</td>" for _, key in columns)
        lines.append(f'          <tr class="risk-{row.risk_level.value}"{style_attr}>{cells}</tr>')
    if not rows:
        lines.append(f'          <tr><td colspan="{len(columns)}">No alerts.</td></tr>')
    lines.extend(["        </tbody>", "      </table>", "    </section>"])
    return lines


def _display(value: object) -> str:
    if value is None:
        return ""
    return str(value)


__all__ = ["AlertsEvaluatePayload", "create_app"]
