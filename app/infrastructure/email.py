"""Transactional email delivery via SendGrid with Jinja2 rendered templates."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Mapping

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.config import get_settings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "email_templates"

DIGEST_PERIOD_LABELS = {
    "daily": "ប្រចាំថ្ងៃ",
    "weekly": "ប្រចាំសប្តាហ៍",
}
TEST_EMAIL_SUBJECT = "ការសាកល្បងអ៊ីមែល - PLP Mentor"
DEFAULT_RECIPIENT_NAME = "អ្នកប្រើប្រាស់"


@lru_cache(maxsize=1)
def get_template_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_email_template(name: str, context: Mapping[str, Any]) -> str:
    """Render ``<name>.html`` from the bundled templates with ``context``."""

    settings = get_settings()
    template = get_template_environment().get_template(f"{name}.html")
    return template.render({"app_url": settings.app_url.rstrip("/"), **context})


def email_delivery_configured() -> bool:
    settings = get_settings()
    return bool(settings.sendgrid_api_key and settings.sendgrid_sender)


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages = [
                f"{item['message']} (help: {item['help']})"
                if item.get("help")
                else str(item["message"])
                for item in errors
                if isinstance(item, dict) and item.get("message")
            ]
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _log_sendgrid_failure(recipient: str, status_code: Any, body: Any) -> None:
    details = _extract_sendgrid_error_details(body)
    if status_code and details:
        logger.error(
            "SendGrid rejected email to %s with status %s: %s",
            recipient,
            status_code,
            details,
        )
    elif status_code:
        logger.error("SendGrid rejected email to %s with status %s", recipient, status_code)
    elif details:
        logger.error("SendGrid request for %s failed: %s", recipient, details)
    else:
        logger.error("SendGrid request for %s failed", recipient)


def send_email(subject: str, html_content: str, recipient: str) -> bool:
    """Send an email using the configured SendGrid credentials.

    Returns ``False`` when SendGrid is not configured or the request fails;
    failures are logged and never raised.
    """

    settings = get_settings()
    if not email_delivery_configured():
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return False

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        status_code = getattr(exc, "status_code", None)
        body = getattr(exc, "body", None)
        if status_code is None and body is None:
            logger.exception("Error sending email to %s via SendGrid", recipient)
        else:
            _log_sendgrid_failure(recipient, status_code, body)
        return False

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        _log_sendgrid_failure(recipient, status_code, getattr(response, "body", None))
        return False

    logger.info("Email sent to %s", recipient)
    return True


def send_notification_email(
    recipient: str,
    *,
    user_name: str,
    title: str,
    message: str,
    priority: str,
    actions: Iterable[Mapping[str, Any]] = (),
) -> bool:
    html_content = render_email_template(
        "notification",
        {
            "user_name": user_name,
            "title": title,
            "message": message,
            "priority": priority,
            "actions": list(actions),
        },
    )
    return send_email(title, html_content, recipient)


def digest_subject(frequency: str) -> str:
    return f"ការជូនដំណឹង{DIGEST_PERIOD_LABELS.get(frequency, DIGEST_PERIOD_LABELS['daily'])}"


def send_digest_email(
    recipient: str,
    *,
    frequency: str,
    notifications: list[Mapping[str, Any]],
) -> bool:
    """Send one digest listing ``notifications`` (title, message, time, type, priority)."""

    html_content = render_email_template(
        "digest",
        {
            "frequency": frequency,
            "period": DIGEST_PERIOD_LABELS.get(frequency, DIGEST_PERIOD_LABELS["daily"]),
            "notifications": notifications,
        },
    )
    return send_email(digest_subject(frequency), html_content, recipient)


def send_test_email(recipient: str, *, title: str, message: str) -> bool:
    html_content = render_email_template(
        "notification",
        {
            "user_name": DEFAULT_RECIPIENT_NAME,
            "title": title,
            "message": message,
            "priority": "low",
            "actions": [],
        },
    )
    return send_email(TEST_EMAIL_SUBJECT, html_content, recipient)


__all__ = [
    "digest_subject",
    "email_delivery_configured",
    "render_email_template",
    "send_digest_email",
    "send_email",
    "send_notification_email",
    "send_test_email",
]
