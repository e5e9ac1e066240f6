"""Typed interfaces for alert emission."""

from collections.abc import Sequence
from typing import Protocol

from wpt_monitor.domain import Violation


class AlertSinkPort(Protocol):
    """Port definition for fire-and-forget threshold alerts."""

    def notification_send_alert(self, target_key: str, report_link: str, violations: Sequence[Violation]) -> None:
        """Emit one alert for a completed target with threshold violations.

        Args:
            target_key: Logical target identifier.
            report_link: Human-viewable report URL.
            violations: Full violation list in metric-schema order.
        """
