"""Typed interfaces for adapter-layer responsibilities."""

from typing import Protocol

from wpt_monitor.domain import PollResult, SubmitResult


class WebPageTestAdapterPort(Protocol):
    """Port definition for submitting and polling WebPageTest jobs."""

    def adapter_source_name(self) -> str:
        """Return adapter source identifier for diagnostics.

        Returns:
            str: Human-readable upstream source identifier.
        """

    def adapter_submit_test(self, target_url: str) -> SubmitResult:
        """Submit one measurement for the target URL.

        Args:
            target_url: URL to measure.

        Returns:
            SubmitResult: `SubmitAccepted` with the polling handle, or `SubmitRejected`
            with the service status code.

        Raises:
            ConnectionError: Raised when upstream connection fails.
            TimeoutError: Raised when request exceeds timeout.
        """

    def adapter_poll_test(self, handle: str) -> PollResult:
        """Poll one submitted measurement by its handle.

        Args:
            handle: Polling reference returned at submission.

        Returns:
            PollResult: `PollPending`, `PollCompleted`, or `PollMalformed`.

        Raises:
            ConnectionError: Raised when upstream connection fails.
            TimeoutError: Raised when request exceeds timeout.
        """
