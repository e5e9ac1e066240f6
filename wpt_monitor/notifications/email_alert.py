"""SMTP email alert sink for threshold violations."""

from __future__ import annotations

import smtplib
from collections.abc import Sequence
from email.mime.text import MIMEText

import structlog

from wpt_monitor.domain import Violation

from .interfaces import AlertSinkPort

logger = structlog.get_logger(__name__)


def notification_format_violation(violation: Violation) -> str:
    """Render one violation as a single alert line.

    Values are shown without a trailing `.0` when integral.
    """

    units_suffix = f" {violation.units}" if violation.units else ""
    return (
        f"{violation.name}: {_notification_format_number(violation.observed_value)}{units_suffix} "
        f"(threshold {_notification_format_number(violation.threshold_value)}{units_suffix})"
    )


def notification_build_alert_body(target_key: str, report_link: str, violations: Sequence[Violation]) -> str:
    """Build the plain-text alert body listing every violation."""

    lines = [
        f"WebPageTest results for {target_key} reached {len(violations)} configured threshold(s).",
        "",
    ]
    lines.extend(f"- {notification_format_violation(violation)}" for violation in violations)
    lines.append("")
    if report_link:
        lines.append(f"Full report: {report_link}")
    lines.append("")
    lines.append("This is an automated notification from wpt-monitor.")
    return "\n".join(lines)


def _notification_format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


class SmtpAlertSink(AlertSinkPort):
    """Alert sink that emails violations to the configured recipients.

    Delivery failures are logged and not raised; retries and recipient
    resolution belong to the mail system.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        recipients: Sequence[str],
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout_seconds: float = 30.0,
    ):
        if not host.strip():
            raise ValueError("host must not be blank")
        if not sender.strip():
            raise ValueError("sender must not be blank")
        self._host = host.strip()
        self._port = port
        self._sender = sender.strip()
        self._recipients = [recipient.strip() for recipient in recipients if recipient.strip()]
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout_seconds = timeout_seconds

    def notification_send_alert(self, target_key: str, report_link: str, violations: Sequence[Violation]) -> None:
        """Send one alert email; no-op with a warning when no recipients are configured.

        Args:
            target_key: Logical target identifier.
            report_link: Human-viewable report URL.
            violations: Full violation list in metric-schema order.
        """

        if not self._recipients:
            logger.warning(
                "No alert recipients configured, alert not sent",
                target_key=target_key,
                violation_count=len(violations),
            )
            return

        message = MIMEText(notification_build_alert_body(target_key, report_link, violations), "plain", "utf-8")
        message["From"] = self._sender
        message["To"] = ", ".join(self._recipients)
        message["Subject"] = f"WebPageTest threshold alert: {target_key}"

        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout_seconds) as server:
                if self._use_tls:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as error:
            logger.error(
                "Alert email delivery failed",
                target_key=target_key,
                recipients=self._recipients,
                error=str(error),
            )
            return

        logger.info(
            "Alert email sent",
            target_key=target_key,
            recipients=self._recipients,
            violation_count=len(violations),
        )
