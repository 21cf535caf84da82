"""Mail transports used to deliver lifecycle notices."""

from __future__ import annotations

import json
import logging
import re
from html import unescape
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from apinotice.config import Settings, get_settings
from apinotice.domain.ports import DeliveryResult, Mailer

logger = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(r"(?s)<[^>]+>")
_LINE_BREAKS = (
    ("<br>", "\n"),
    ("<br/>", "\n"),
    ("<br />", "\n"),
    ("</h2>", "\n"),
    ("</p>", "\n\n"),
    ("</li>", "\n"),
)


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
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                help_link = item.get("help")
                if message and help_link:
                    messages.append(f"{message} (help: {help_link})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_failure(status_code: Any, details: str | None) -> str:
    if status_code and details:
        return f"SendGrid responded with status {status_code}: {details}"
    if status_code:
        return f"SendGrid responded with status {status_code}"
    if details:
        return f"SendGrid request failed: {details}"
    return "SendGrid request failed"


def html_to_text(html_body: str) -> str:
    """Derive a plain-text alternative from a notice's HTML body."""

    text = html_body
    for tag, replacement in _LINE_BREAKS:
        text = text.replace(tag, replacement)
    text = unescape(_TAG_PATTERN.sub("", text))
    return text.replace("  ", " ").strip()


class SendGridMailer:
    """Deliver notices through the SendGrid REST API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        *,
        sender_name: str | None = None,
        client: SendGridAPIClient | None = None,
    ) -> None:
        self._sender = sender
        self._sender_name = sender_name
        self._client = client or SendGridAPIClient(api_key)

    def send(self, recipient: str, subject: str, html_body: str) -> DeliveryResult:
        from_email = (
            (self._sender, self._sender_name) if self._sender_name else self._sender
        )
        message = Mail(
            from_email=from_email,
            to_emails=recipient,
            subject=subject,
            plain_text_content=html_to_text(html_body),
            html_content=html_body,
        )

        try:
            response = self._client.send(message)
        except Exception as exc:  # network and HTTP errors surface as exceptions
            status_code = getattr(exc, "status_code", None)
            details = _extract_sendgrid_error_details(getattr(exc, "body", None))
            if not (status_code or details):
                details = str(exc) or exc.__class__.__name__
            reason = _describe_failure(status_code, details)
            logger.error("SendGrid delivery to %s failed: %s", recipient, reason)
            return DeliveryResult.failed(reason)

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            details = _extract_sendgrid_error_details(getattr(response, "body", None))
            reason = _describe_failure(status_code, details)
            logger.error("SendGrid delivery to %s failed: %s", recipient, reason)
            return DeliveryResult.failed(reason)

        return DeliveryResult.ok()


class ConsoleMailer:
    """Log notices instead of sending them; used when SendGrid is not configured."""

    def send(self, recipient: str, subject: str, html_body: str) -> DeliveryResult:
        logger.info(
            "[mailer] to=%s subject=%r body=%r", recipient, subject, html_to_text(html_body)
        )
        return DeliveryResult.ok()


def build_mailer(settings: Settings | None = None) -> Mailer:
    """Return the SendGrid transport when configured, the console one otherwise."""

    settings = settings or get_settings()
    if settings.sendgrid_api_key and settings.sendgrid_sender:
        logger.info("Using SendGrid mail transport")
        return SendGridMailer(
            settings.sendgrid_api_key,
            settings.sendgrid_sender,
            sender_name=settings.sendgrid_sender_name,
        )
    logger.info("SendGrid configuration incomplete; using console mail transport")
    return ConsoleMailer()


__all__ = ["ConsoleMailer", "SendGridMailer", "build_mailer", "html_to_text"]
