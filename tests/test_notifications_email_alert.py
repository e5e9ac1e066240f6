"""Regression tests for alert email formatting and delivery handling."""

from __future__ import annotations

import smtplib

from wpt_monitor.domain import Violation
from wpt_monitor.notifications import SmtpAlertSink, notification_build_alert_body, notification_format_violation

_SPEED_INDEX_VIOLATION = Violation(
    name="Webpagetest Speed Index",
    units="",
    observed_value=250.0,
    threshold_value=200.0,
)
_FULLY_LOADED_VIOLATION = Violation(name="Fully Loaded", units="ms", observed_value=1850.5, threshold_value=1800.0)


class _SmtpStub:
    """SMTP client stub recording session calls."""

    instances: list["_SmtpStub"] = []
    fail_on_send = False

    def __init__(self, host: str, port: int, timeout: float):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls: list[str] = []
        self.messages = []
        _SmtpStub.instances.append(self)

    def __enter__(self) -> "_SmtpStub":
        return self

    def __exit__(self, *_exc_info) -> None:
        return None

    def starttls(self) -> None:
        self.calls.append("starttls")

    def login(self, username: str, password: str) -> None:
        self.calls.append(f"login:{username}")

    def send_message(self, message) -> None:
        if _SmtpStub.fail_on_send:
            raise smtplib.SMTPServerDisconnected("connection lost")
        self.calls.append("send")
        self.messages.append(message)


def _reset_smtp_stub(monkeypatch, fail_on_send: bool = False) -> None:
    _SmtpStub.instances = []
    _SmtpStub.fail_on_send = fail_on_send
    monkeypatch.setattr(smtplib, "SMTP", _SmtpStub)


def test_format_violation_includes_values_and_units() -> None:
    """Each line shows the name, observed value, threshold, and units."""

    assert notification_format_violation(_SPEED_INDEX_VIOLATION) == "Webpagetest Speed Index: 250 (threshold 200)"
    assert notification_format_violation(_FULLY_LOADED_VIOLATION) == "Fully Loaded: 1850.5 ms (threshold 1800 ms)"


def test_alert_body_lists_every_violation_and_report_link() -> None:
    """The body lists all violations and the report link."""

    body = notification_build_alert_body(
        "https://example.com",
        "https://wpt/result/abc/",
        [_SPEED_INDEX_VIOLATION, _FULLY_LOADED_VIOLATION],
    )

    assert "https://example.com reached 2 configured threshold(s)" in body
    assert "- Webpagetest Speed Index: 250 (threshold 200)" in body
    assert "- Fully Loaded: 1850.5 ms (threshold 1800 ms)" in body
    assert "Full report: https://wpt/result/abc/" in body


def test_send_alert_delivers_email_with_tls_and_login(monkeypatch) -> None:
    """A configured sink sends one message to every recipient."""

    _reset_smtp_stub(monkeypatch)
    alert_sink = SmtpAlertSink(
        host="smtp.example.com",
        port=587,
        sender="monitor@example.com",
        recipients=["ops@example.com", " dev@example.com "],
        username="monitor",
        password="secret",
    )

    alert_sink.notification_send_alert("home", "https://wpt/result/abc/", [_SPEED_INDEX_VIOLATION])

    smtp_client = _SmtpStub.instances[0]
    assert (smtp_client.host, smtp_client.port) == ("smtp.example.com", 587)
    assert smtp_client.calls == ["starttls", "login:monitor", "send"]
    message = smtp_client.messages[0]
    assert message["To"] == "ops@example.com, dev@example.com"
    assert message["Subject"] == "WebPageTest threshold alert: home"


def test_send_alert_without_recipients_skips_delivery(monkeypatch) -> None:
    """No recipients means no SMTP session."""

    _reset_smtp_stub(monkeypatch)
    alert_sink = SmtpAlertSink(host="smtp.example.com", port=587, sender="monitor@example.com", recipients=[" "])

    alert_sink.notification_send_alert("home", "", [_SPEED_INDEX_VIOLATION])

    assert _SmtpStub.instances == []


def test_send_alert_logs_delivery_failure_without_raising(monkeypatch) -> None:
    """SMTP failures are not raised to the poll cycle."""

    _reset_smtp_stub(monkeypatch, fail_on_send=True)
    alert_sink = SmtpAlertSink(
        host="smtp.example.com",
        port=25,
        sender="monitor@example.com",
        recipients=["ops@example.com"],
        use_tls=False,
    )

    alert_sink.notification_send_alert("home", "", [_SPEED_INDEX_VIOLATION])

    assert _SmtpStub.instances[0].calls == []
