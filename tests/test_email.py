"""Unit tests for the SendGrid email helpers and templates."""

from __future__ import annotations

import json
import types

import pytest

from app.infrastructure import email as email_module


class DummySettings:
    sendgrid_api_key = "SG.fake"
    sendgrid_sender = "sender@example.com"
    app_url = "https://mentor.example.org/"


class UnconfiguredSettings(DummySettings):
    sendgrid_api_key = None
    sendgrid_sender = None


class RecordingClient:
    """Stand-in for ``SendGridAPIClient`` that records the sent message."""

    sent: list = []

    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message):
        RecordingClient.sent.append(message)
        return types.SimpleNamespace(status_code=202, body=None)


@pytest.fixture
def configured(monkeypatch: pytest.MonkeyPatch):
    RecordingClient.sent = []
    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)


def test_send_email_without_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    """When SendGrid settings are missing the helper should exit early."""

    monkeypatch.setattr(email_module, "get_settings", lambda: UnconfiguredSettings())

    assert email_module.email_delivery_configured() is False
    assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is False


def test_send_email_success(configured) -> None:
    assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is True
    assert len(RecordingClient.sent) == 1


def test_send_email_rejected_status(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    class RejectingClient(RecordingClient):
        def send(self, message):
            return types.SimpleNamespace(status_code=400, body=b'{"errors": [{"message": "Bad to"}]}')

    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", RejectingClient)

    with caplog.at_level("ERROR"):
        assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is False
    assert "status 400: Bad to" in caplog.text


def test_send_email_logs_forbidden_error(monkeypatch: pytest.MonkeyPatch, caplog):
    """Forbidden responses from SendGrid should surface meaningful log details."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {
                "errors": [
                    {
                        "message": "The provided authorization grant is invalid.",
                        "help": "https://sendgrid.com/docs/for-developers/sending-email/authentication/",
                    }
                ]
            }
        ).encode()

    class FailingClient(RecordingClient):
        def send(self, message):
            raise FakeForbiddenError()

    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", FailingClient)

    with caplog.at_level("ERROR"):
        result = email_module.send_email("Subject", "<p>Body</p>", "user@example.com")

    assert result is False
    assert "status 403" in caplog.text
    assert "authorization grant is invalid" in caplog.text


def test_notification_email_renders_escaped_content(configured, monkeypatch) -> None:
    captured = {}

    def fake_send(subject, html_content, recipient):
        captured.update(subject=subject, html=html_content, recipient=recipient)
        return True

    monkeypatch.setattr(email_module, "send_email", fake_send)

    assert email_module.send_notification_email(
        "dara@example.com",
        user_name="Dara",
        title="Observation <scheduled>",
        message="See you on Monday",
        priority="urgent",
        actions=[{"label": "Open", "url": "/observations/4"}, {"label": "No link"}],
    )

    assert captured["subject"] == "Observation <scheduled>"
    assert captured["recipient"] == "dara@example.com"
    html = captured["html"]
    assert "Dara" in html
    assert "Observation &lt;scheduled&gt;" in html
    assert 'class="priority-urgent"' in html
    assert 'href="/observations/4"' in html
    assert "No link" not in html


def test_digest_email_lists_every_notification(configured, monkeypatch) -> None:
    captured = {}

    def fake_send(subject, html_content, recipient):
        captured.update(subject=subject, html=html_content)
        return True

    monkeypatch.setattr(email_module, "send_email", fake_send)
    items = [
        {"title": "First", "message": "One", "time": "01/05/2024 08:00", "type": "announcement", "priority": "low"},
        {"title": "Second", "message": "Two", "time": "02/05/2024 09:30", "type": "mission_created", "priority": "high"},
    ]

    email_module.send_digest_email("dara@example.com", frequency="weekly", notifications=items)

    assert captured["subject"] == email_module.digest_subject("weekly")
    assert email_module.DIGEST_PERIOD_LABELS["weekly"] in captured["subject"]
    html = captured["html"]
    assert "First" in html and "Second" in html
    assert "02/05/2024 09:30" in html
    assert "ចំនួន 2" in html
    assert "https://mentor.example.org/notifications" in html


def test_test_email_uses_fixed_subject(configured) -> None:
    assert email_module.send_test_email("dara@example.com", title="Test", message="Hello")
    assert len(RecordingClient.sent) == 1
