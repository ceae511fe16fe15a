"""SMS delivery through Twilio."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Final

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from app.config import get_settings

logger = logging.getLogger(__name__)

_WHITESPACE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\s+")
_CAMBODIA_PHONE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:\+855|0)?(?:1[2-9]|2[3-8]|3[2-9]|6[0-9]|7[0-9]|8[1-9]|9[0-9])\d{6,7}$"
)
MAX_SMS_BODY_LENGTH: Final[int] = 1600


def sms_delivery_configured() -> bool:
    """Return ``True`` when SMS is switched on and Twilio credentials are present."""

    settings = get_settings()
    return bool(
        settings.sms_enabled
        and settings.twilio_account_sid
        and settings.twilio_auth_token
        and settings.twilio_from_number
    )


@lru_cache(maxsize=1)
def _get_client(account_sid: str, auth_token: str) -> Client:
    return Client(account_sid, auth_token)


def normalize_phone_number(phone_number: str, country_code: str | None = None) -> str:
    """Return ``phone_number`` in international form.

    Local numbers lose their leading zero and gain the configured country
    code (``+855`` by default). Numbers already starting with ``+`` are kept.
    """

    number = _WHITESPACE_PATTERN.sub("", phone_number or "")
    if not number or number.startswith("+"):
        return number
    prefix = country_code or get_settings().sms_country_code
    if number.startswith("0"):
        number = number[1:]
    return f"{prefix}{number}"


def is_phone_number_valid(phone_number: str) -> bool:
    return bool(_CAMBODIA_PHONE_PATTERN.match(_WHITESPACE_PATTERN.sub("", phone_number or "")))


def format_sms_body(title: str, message: str) -> str:
    body = f"{title}\n{message}"
    if len(body) > MAX_SMS_BODY_LENGTH:
        body = body[: MAX_SMS_BODY_LENGTH - 3] + "..."
    return body


def send_sms(recipient: str, body: str) -> bool:
    """Send ``body`` to ``recipient``.

    When SMS delivery is disabled the call is a silent no-op returning
    ``False``. Twilio errors are logged and reported as ``False``.
    """

    if not sms_delivery_configured():
        logger.debug("SMS not sent to %s: delivery disabled", recipient)
        return False

    settings = get_settings()
    to_number = normalize_phone_number(recipient)
    try:
        client = _get_client(settings.twilio_account_sid, settings.twilio_auth_token)
        message = client.messages.create(
            body=body,
            from_=settings.twilio_from_number,
            to=to_number,
        )
    except TwilioException as exc:
        logger.error("Failed to send SMS to %s: %s", to_number, exc)
        return False

    logger.info("SMS sent to %s: %s", to_number, message.sid)
    return True


__all__ = [
    "format_sms_body",
    "is_phone_number_valid",
    "normalize_phone_number",
    "send_sms",
    "sms_delivery_configured",
]
