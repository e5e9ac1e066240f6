"""Project-native typed exceptions for WebPageTest adapter failures."""

from __future__ import annotations


class WebPageTestAdapterError(Exception):
    """Base exception for adapter-level WebPageTest failures.

    Attributes:
        status_code: Optional HTTP or service status code.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class WebPageTestConnectionError(WebPageTestAdapterError, ConnectionError):
    """Transport-level connectivity failure or non-success HTTP status."""


class WebPageTestTimeoutError(WebPageTestAdapterError, TimeoutError):
    """Transport request timed out."""


class WebPageTestResponseError(WebPageTestAdapterError, ValueError):
    """Response body is not the JSON document the service contract promises."""
