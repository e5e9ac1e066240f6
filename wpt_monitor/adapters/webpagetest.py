"""WebPageTest adapter implementation for test submission and result polling."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Final

import httpx
import structlog

from wpt_monitor.domain import (
    PollCompleted,
    PollMalformed,
    PollPending,
    PollResult,
    SubmitAccepted,
    SubmitRejected,
    SubmitResult,
    domain_extract_metrics,
)

from .errors import WebPageTestConnectionError, WebPageTestResponseError, WebPageTestTimeoutError
from .interfaces import WebPageTestAdapterPort

logger = structlog.get_logger(__name__)


class WebPageTestAdapter(WebPageTestAdapterPort):
    """Adapter for the WebPageTest `runtest.php` and `jsonResult.php` flow.

    Submission sends a single first-view run with JSON output. The returned
    `jsonUrl` is the polling handle; polling it yields a 1xx status while the
    test is queued or running and 200 once the median first-view bundle is ready.
    """

    _USER_AGENT: Final[str] = "wpt-monitor/0.1 (Python/httpx)"
    _SUCCESS_STATUS_CODE: Final[int] = 200
    _FIRST_VIEW_ONLY: Final[str] = "1"
    _OUTPUT_FORMAT: Final[str] = "json"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://www.webpagetest.org",
        location: str = "Dulles:Chrome.Cable",
        request_timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize WebPageTest adapter.

        Args:
            api_key: WebPageTest API key.
            base_url: WebPageTest server base URL.
            location: Device/network profile passed as the `location` parameter.
            request_timeout_seconds: HTTP request timeout in seconds.
            transport: Optional httpx transport override.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_api_key = api_key.strip()
        normalized_base_url = base_url.strip()
        normalized_location = location.strip()

        if not normalized_api_key:
            raise ValueError("api_key must not be blank")
        if not normalized_base_url:
            raise ValueError("base_url must not be blank")
        if not normalized_location:
            raise ValueError("location must not be blank")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._api_key = normalized_api_key
        self._base_url = normalized_base_url.rstrip("/")
        self._location = normalized_location
        self._request_timeout_seconds = request_timeout_seconds
        self._transport = transport

    def adapter_source_name(self) -> str:
        return "webpagetest"

    def adapter_submit_test(self, target_url: str) -> SubmitResult:
        """Submit one first-view test for the target URL.

        Args:
            target_url: URL to measure.

        Returns:
            SubmitResult: Accepted result with polling handle, or rejected result with status code.

        Raises:
            ValueError: Raised when target URL is blank.
            ConnectionError: Raised for network and non-success HTTP status.
            TimeoutError: Raised when the request times out.
            WebPageTestResponseError: Raised when an accepted response lacks a polling handle.
        """

        normalized_target_url = target_url.strip()
        if not normalized_target_url:
            raise ValueError("target_url must not be blank")

        response_document = self._adapter_get_json(
            url=f"{self._base_url}/runtest.php",
            query_parameters={
                "url": normalized_target_url,
                "k": self._api_key,
                "location": self._location,
                "fvonly": self._FIRST_VIEW_ONLY,
                "f": self._OUTPUT_FORMAT,
            },
        )
        if response_document is None:
            raise WebPageTestResponseError("runtest response is not a JSON document")

        status_code = self._adapter_status_code(response_document)
        status_text = str(response_document.get("statusText") or "")
        if status_code != self._SUCCESS_STATUS_CODE:
            return SubmitRejected(status_code=status_code if status_code is not None else -1, message=status_text)

        data = response_document.get("data")
        if not isinstance(data, dict):
            raise WebPageTestResponseError("runtest response missing data object", status_code=status_code)

        test_id = str(data.get("testId") or "").strip()
        handle = str(data.get("jsonUrl") or "").strip()
        if not handle and test_id:
            handle = f"{self._base_url}/jsonResult.php?test={test_id}"
        if not handle:
            raise WebPageTestResponseError("runtest response missing jsonUrl and testId", status_code=status_code)

        report_link = str(data.get("userUrl") or "").strip()
        logger.debug("WebPageTest submission accepted", target_url=normalized_target_url, test_id=test_id)
        return SubmitAccepted(handle=handle, test_id=test_id, report_link=report_link)

    def adapter_poll_test(self, handle: str) -> PollResult:
        """Poll one submitted test by its `jsonUrl` handle.

        Args:
            handle: Polling reference returned at submission.

        Returns:
            PollResult: Pending, completed, or malformed poll outcome.

        Raises:
            ValueError: Raised when handle is blank.
            ConnectionError: Raised for network and non-success HTTP status.
            TimeoutError: Raised when the request times out.
        """

        normalized_handle = handle.strip()
        if not normalized_handle:
            raise ValueError("handle must not be blank")

        response_document = self._adapter_get_json(url=normalized_handle, query_parameters=None)
        if response_document is None:
            return PollMalformed(detail="poll response is not a JSON document")

        status_code = self._adapter_status_code(response_document)
        status_text = str(response_document.get("statusText") or "")
        if status_code is None:
            return PollMalformed(detail="poll response missing statusCode")
        if 100 <= status_code < 200:
            return PollPending(status_code=status_code, status_text=status_text)
        if status_code != self._SUCCESS_STATUS_CODE:
            return PollMalformed(detail=f"poll response statusCode={status_code} statusText={status_text}")

        return self._adapter_build_completed(response_document)

    def _adapter_build_completed(self, response_document: dict[str, Any]) -> PollResult:
        """Map a completed poll document to a completed or malformed result.

        Args:
            response_document: Parsed poll response with statusCode 200.

        Returns:
            PollResult: Completed result with schema-ordered metrics, or malformed result.
        """

        data = response_document.get("data")
        if not isinstance(data, dict):
            return PollMalformed(detail="completed response missing data object")

        median = data.get("median")
        first_view = median.get("firstView") if isinstance(median, dict) else None
        if not isinstance(first_view, dict):
            return PollMalformed(detail="completed response missing data.median.firstView")

        try:
            metrics = domain_extract_metrics(first_view)
        except (KeyError, ValueError) as error:
            return PollMalformed(detail=f"completed response has unusable metrics: {error}")

        report_link = str(data.get("summary") or "").strip()
        completed_at_utc = datetime.now(timezone.utc)
        completed_epoch = data.get("completed")
        if isinstance(completed_epoch, (int, float)) and not isinstance(completed_epoch, bool):
            try:
                completed_at_utc = datetime.fromtimestamp(completed_epoch, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as error:
                return PollMalformed(detail=f"completed response has unusable completion time: {error}")

        return PollCompleted(metrics=metrics, report_link=report_link, completed_at_utc=completed_at_utc)

    def _adapter_status_code(self, response_document: dict[str, Any]) -> int | None:
        """Return the service-level status code, or None when absent or non-numeric."""

        raw_status_code = response_document.get("statusCode")
        if isinstance(raw_status_code, bool):
            return None
        try:
            return int(raw_status_code)
        except (TypeError, ValueError):
            return None

    def _adapter_get_json(self, url: str, query_parameters: dict[str, str] | None) -> dict[str, Any] | None:
        """Execute one HTTP GET and parse the body as a JSON object.

        Args:
            url: Endpoint URL.
            query_parameters: Query string parameters, or None to send the URL unchanged.

        Returns:
            dict[str, Any] | None: Parsed JSON object, or None when the body is not a JSON object.

        Raises:
            WebPageTestTimeoutError: Raised when the request times out.
            WebPageTestConnectionError: Raised for transport failures and HTTP status >= 400.
        """

        try:
            with httpx.Client(
                timeout=self._request_timeout_seconds,
                headers={"User-Agent": self._USER_AGENT},
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = client.get(url, params=query_parameters)
        except httpx.TimeoutException as error:
            raise WebPageTestTimeoutError("WebPageTest request timed out") from error
        except httpx.HTTPError as error:
            raise WebPageTestConnectionError("WebPageTest transport request failed") from error

        if response.status_code >= 400:
            raise WebPageTestConnectionError(
                f"WebPageTest upstream returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            document = response.json()
        except ValueError:
            return None
        if not isinstance(document, dict):
            return None
        return document
