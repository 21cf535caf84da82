"""Unit tests for the mail transports."""

from __future__ import annotations

import json
import logging

from apinotice.config import Settings
from apinotice.infrastructure.email import (
    ConsoleMailer,
    SendGridMailer,
    _extract_sendgrid_error_details,
    build_mailer,
    html_to_text,
)


class _Response:
    def __init__(self, status_code: int, body: bytes | str = b"") -> None:
        self.status_code = status_code
        self.body = body


class _SendGridError(Exception):
    def __init__(self, status_code: int, body: bytes) -> None:
        super().__init__("HTTP Error")
        self.status_code = status_code
        self.body = body


class _Client:
    def __init__(self, result) -> None:
        self.result = result
        self.messages = []

    def send(self, message):
        self.messages.append(message)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_send_builds_html_and_plain_text_message():
    client = _Client(_Response(202))
    mailer = SendGridMailer("key", "noreply@example.com", sender_name="API Team", client=client)

    result = mailer.send("owner@example.com", "Subject", "<p>Hello<br/>world</p>")

    assert result.success
    payload = client.messages[0].get()
    assert payload["from"] == {"email": "noreply@example.com", "name": "API Team"}
    assert payload["subject"] == "Subject"
    assert payload["personalizations"][0]["to"] == [{"email": "owner@example.com"}]
    contents = {item["type"]: item["value"] for item in payload["content"]}
    assert contents["text/html"] == "<p>Hello<br/>world</p>"
    assert contents["text/plain"] == "Hello\nworld"


def test_send_reports_provider_errors(caplog):
    body = json.dumps({"errors": [{"message": "Invalid sender", "help": "https://help"}]}).encode()
    mailer = SendGridMailer("key", "noreply@example.com", client=_Client(_SendGridError(403, body)))

    with caplog.at_level(logging.ERROR):
        result = mailer.send("owner@example.com", "Subject", "<p>Hi</p>")

    assert not result.success
    assert result.error == "SendGrid responded with status 403: Invalid sender (help: https://help)"
    assert "owner@example.com" in caplog.text


def test_send_treats_non_success_status_as_failure():
    mailer = SendGridMailer("key", "noreply@example.com", client=_Client(_Response(500, "oops")))

    result = mailer.send("owner@example.com", "Subject", "<p>Hi</p>")

    assert not result.success
    assert result.error == "SendGrid responded with status 500: oops"


def test_network_error_without_details_uses_exception_text():
    mailer = SendGridMailer("key", "noreply@example.com", client=_Client(ConnectionError("reset by peer")))

    result = mailer.send("owner@example.com", "Subject", "<p>Hi</p>")

    assert result.error == "SendGrid request failed: reset by peer"


def test_extract_error_details_handles_plain_payloads():
    assert _extract_sendgrid_error_details(None) is None
    assert _extract_sendgrid_error_details(b"  ") is None
    assert _extract_sendgrid_error_details("not json") == "not json"
    assert _extract_sendgrid_error_details({"errors": [{"message": "bad"}]}) == "bad"


def test_html_to_text_strips_markup():
    assert html_to_text("<h2>Title</h2><p>A &amp; B</p>") == "Title\nA & B"


def test_console_mailer_logs_message(caplog):
    with caplog.at_level(logging.INFO, logger="apinotice"):
        result = ConsoleMailer().send("owner@example.com", "Subject", "<p>Hi</p>")

    assert result.success
    assert "owner@example.com" in caplog.text


def test_build_mailer_picks_transport_from_settings():
    configured = Settings(sendgrid_api_key="key", sendgrid_sender="noreply@example.com")
    unconfigured = Settings()

    assert isinstance(build_mailer(configured), SendGridMailer)
    assert isinstance(build_mailer(unconfigured), ConsoleMailer)
