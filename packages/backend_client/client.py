"""Minimal REST client for the reverse-logistics backend."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import requests

DEFAULT_BACKEND_URL = "https://irevlogix-backend.onrender.com"
DEFAULT_TIMEOUT_SECONDS = 30.0

LOGGER = logging.getLogger("revlogix.backend")


class BackendClientError(RuntimeError):
    """Raised when the backend cannot be reached or answers with an error."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class Credentials:
    """Opaque bearer credential supplied by the caller's session."""

    token: str

    def authorization_header(self) -> str:
        return f"Bearer {self.token}"

    @classmethod
    def from_header(cls, value: Optional[str]) -> Optional["Credentials"]:
        """Build credentials from an ``Authorization`` header value."""
        if not value:
            return None
        scheme, _, rest = value.strip().partition(" ")
        if scheme.lower() == "bearer":
            token = rest.strip()
        elif not rest:
            # bare token without a scheme
            token = scheme
        else:
            return None
        if not token:
            return None
        return cls(token=token)


@dataclass
class BackendClientConfig:
    """Configuration for connecting to the backend API."""

    url: str
    token: str
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "BackendClientConfig":
        """Create a configuration by reading environment variables."""
        token = os.getenv("REVLOGIX_API_TOKEN")
        if not token:
            raise BackendClientError("Missing required environment variables: REVLOGIX_API_TOKEN")
        url = os.getenv("REVLOGIX_BACKEND_URL") or DEFAULT_BACKEND_URL
        raw_timeout = os.getenv("REVLOGIX_BACKEND_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_SECONDS
        except ValueError:
            timeout = DEFAULT_TIMEOUT_SECONDS
        return cls(url=url, token=token, timeout=timeout)


class BackendClient:
    """Small helper around the backend REST API."""

    def __init__(
        self,
        url: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if credentials is None:
            config = BackendClientConfig.from_env()
            credentials = Credentials(config.token)
            url = url or config.url
            timeout = timeout if timeout is not None else config.timeout
        self.url = (url or os.getenv("REVLOGIX_BACKEND_URL") or DEFAULT_BACKEND_URL).rstrip("/")
        self.credentials = credentials
        self.timeout = float(timeout) if timeout is not None else DEFAULT_TIMEOUT_SECONDS
        self._session = session or requests.Session()
        self._logger = logger or LOGGER

    # Public API -----------------------------------------------------------------
    def get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Return the decoded JSON body of a GET request against ``path``."""
        url = self._build_url(path)
        try:
            response = self._session.get(
                url,
                headers=self._headers(),
                params=dict(params) if params else None,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise BackendClientError(f"Request to {url} failed: {exc}") from exc

        if not response.ok:
            raise BackendClientError(
                f"Backend returned HTTP {response.status_code} for {url}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise BackendClientError(
                f"Backend returned invalid JSON for {url}",
                status_code=response.status_code,
            ) from exc

    def forward(
        self,
        method: str,
        path: str,
        *,
        authorization: Optional[str] = None,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        body: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> requests.Response:
        """Relay a request to the backend and return its raw response.

        The ``authorization`` header is passed through verbatim; when it is
        omitted the client's own credentials are attached instead. ``params`` are
        (key, value) pairs so repeated query keys survive the relay.
        """
        url = self._build_url(path)
        headers: Dict[str, str] = {
            "Authorization": authorization if authorization is not None else self.credentials.authorization_header()
        }
        if body is not None:
            headers["Content-Type"] = content_type or "application/json"
        try:
            return self._session.request(
                method.upper(),
                url,
                headers=headers,
                params=list(params) if params else None,
                data=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise BackendClientError(f"Request to {url} failed: {exc}") from exc

    def close(self) -> None:
        self._session.close()

    # Internal helpers ------------------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.credentials.authorization_header(),
            "Accept": "application/json",
        }

    def _build_url(self, path: str) -> str:
        return f"{self.url}/{path.lstrip('/')}"


def relay_headers(response: requests.Response) -> List[tuple[str, str]]:
    """Headers worth copying from a backend response onto a proxied reply."""
    headers = [("Content-Type", response.headers.get("content-type") or "application/json")]
    total = response.headers.get("X-Total-Count")
    if total:
        headers.append(("X-Total-Count", total))
    return headers


__all__ = [
    "BackendClient",
    "BackendClientConfig",
    "BackendClientError",
    "Credentials",
    "DEFAULT_BACKEND_URL",
    "relay_headers",
]
