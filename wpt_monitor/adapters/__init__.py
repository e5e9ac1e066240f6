"""Adapter layer package for testing-service integration boundaries."""

from .errors import (
	WebPageTestAdapterError,
	WebPageTestConnectionError,
	WebPageTestResponseError,
	WebPageTestTimeoutError,
)
from .interfaces import WebPageTestAdapterPort
from .webpagetest import WebPageTestAdapter

__all__ = [
	"WebPageTestAdapter",
	"WebPageTestAdapterError",
	"WebPageTestAdapterPort",
	"WebPageTestConnectionError",
	"WebPageTestResponseError",
	"WebPageTestTimeoutError",
]
