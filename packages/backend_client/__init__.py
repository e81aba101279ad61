"""REST client utilities for the reverse-logistics backend."""
from .client import (
    DEFAULT_BACKEND_URL,
    BackendClient,
    BackendClientConfig,
    BackendClientError,
    Credentials,
    relay_headers,
)

__all__ = [
    "BackendClient",
    "BackendClientConfig",
    "BackendClientError",
    "Credentials",
    "DEFAULT_BACKEND_URL",
    "relay_headers",
]
