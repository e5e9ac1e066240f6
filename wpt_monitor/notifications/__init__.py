"""Notification package for alert emission boundaries."""

from .email_alert import SmtpAlertSink, notification_build_alert_body, notification_format_violation
from .interfaces import AlertSinkPort

__all__ = [
	"AlertSinkPort",
	"SmtpAlertSink",
	"notification_build_alert_body",
	"notification_format_violation",
]
