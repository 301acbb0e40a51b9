import smtplib
import unittest
from dataclasses import replace
from unittest.mock import MagicMock, patch

from app_env import USER

from fastapi.testclient import TestClient

from app.core.config import settings
from app.integrations import email as email_integration
from app.main import app


def _smtp_settings(**overrides):
    values = {
        "smtp_host": "smtp.example.test",
        "smtp_port": 587,
        "smtp_user": "me@example.test",
        "smtp_password": "abcd efgh ijkl",
        "smtp_from": "Me <me@example.test>",
        "smtp_use_tls": True,
    }
    values.update(overrides)
    return replace(settings, **values)


def _server_class():
    server_cls = MagicMock()
    server = server_cls.return_value
    server.__enter__.return_value = server
    server.__exit__.return_value = False
    return server_cls, server


class SendOutreachEmailTests(unittest.TestCase):
    def test_starttls_delivery(self):
        server_cls, server = _server_class()
        with patch.object(email_integration, "settings", _smtp_settings()), patch.object(
            email_integration.smtplib, "SMTP", server_cls
        ):
            sent = email_integration.send_outreach_email(
                to="ana@acme.com", subject="Quick question", body="Hi Ana,\nDo you have a minute?"
            )

        self.assertTrue(sent)
        server_cls.assert_called_once_with("smtp.example.test", 587, timeout=15)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("me@example.test", "abcdefghijkl")
        msg = server.send_message.call_args.args[0]
        self.assertEqual(msg["To"], "ana@acme.com")
        self.assertEqual(msg["From"], "Me <me@example.test>")
        self.assertEqual(msg["Subject"], "Quick question")
        self.assertIn("Do you have a minute?", msg.get_content())
        server.__exit__.assert_called_once()

    def test_ssl_delivery_skips_starttls(self):
        server_cls, server = _server_class()
        with patch.object(
            email_integration, "settings", _smtp_settings(smtp_port=465, smtp_use_tls=False, smtp_password=None)
        ), patch.object(email_integration.smtplib, "SMTP_SSL", server_cls), patch.object(
            email_integration.smtplib, "SMTP"
        ) as plain_cls:
            sent = email_integration.send_outreach_email(to="ana@acme.com", subject="Hello", body="Hi")

        self.assertTrue(sent)
        plain_cls.assert_not_called()
        self.assertEqual(server_cls.call_args.args, ("smtp.example.test", 465))
        server.starttls.assert_not_called()
        server.login.assert_not_called()
        server.send_message.assert_called_once()

    def test_smtp_error_returns_false(self):
        server_cls, server = _server_class()
        server.send_message.side_effect = smtplib.SMTPRecipientsRefused({"ana@acme.com": (550, b"no")})
        with patch.object(email_integration, "settings", _smtp_settings()), patch.object(
            email_integration.smtplib, "SMTP", server_cls
        ):
            sent = email_integration.send_outreach_email(to="ana@acme.com", subject="Hello", body="Hi")
        self.assertFalse(sent)

    def test_connection_closed_when_handshake_fails(self):
        server_cls, server = _server_class()
        server.starttls.side_effect = smtplib.SMTPNotSupportedError("STARTTLS extension not supported")
        with patch.object(email_integration, "settings", _smtp_settings()), patch.object(
            email_integration.smtplib, "SMTP", server_cls
        ):
            sent = email_integration.send_outreach_email(to="ana@acme.com", subject="Hello", body="Hi")

        self.assertFalse(sent)
        server.__exit__.assert_called_once()
        server.send_message.assert_not_called()

    def test_connection_closed_when_login_fails(self):
        server_cls, server = _server_class()
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        with patch.object(email_integration, "settings", _smtp_settings(smtp_use_tls=False)), patch.object(
            email_integration.smtplib, "SMTP_SSL", server_cls
        ):
            sent = email_integration.send_outreach_email(to="ana@acme.com", subject="Hello", body="Hi")

        self.assertFalse(sent)
        server.__exit__.assert_called_once()

    def test_header_line_break_is_not_sent(self):
        server_cls, server = _server_class()
        with patch.object(email_integration, "settings", _smtp_settings()), patch.object(
            email_integration.smtplib, "SMTP", server_cls
        ):
            sent = email_integration.send_outreach_email(
                to="ana@acme.com", subject="Hello\nBcc: x@evil.test", body="Hi"
            )
        self.assertFalse(sent)
        server_cls.assert_not_called()

    def test_not_configured_raises(self):
        with patch.object(email_integration, "settings", _smtp_settings(smtp_host=None)):
            with self.assertRaises(email_integration.EmailNotConfigured):
                email_integration.send_outreach_email(to="ana@acme.com", subject="Hello", body="Hi")


class SendEmailApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_sends_through_smtp(self):
        server_cls, server = _server_class()
        with patch.object(email_integration, "settings", _smtp_settings()), patch.object(
            email_integration.smtplib, "SMTP", server_cls
        ):
            response = self.client.post(
                "/v1/outreach/email",
                json={"to": "ana@acme.com", "subject": "  Hello  ", "body": "Hi Ana"},
                headers=USER,
            )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json(), {"sent": True})
        self.assertEqual(server.send_message.call_args.args[0]["Subject"], "Hello")

    def test_header_injection_is_rejected(self):
        server_cls, server = _server_class()
        with patch.object(email_integration, "settings", _smtp_settings()), patch.object(
            email_integration.smtplib, "SMTP", server_cls
        ):
            for payload in (
                {"to": "ana@acme.com", "subject": "Hello\nBcc: x@evil.test", "body": "Hi"},
                {"to": "ana@acme.com\r\nBcc: x@evil.test", "subject": "Hello", "body": "Hi"},
            ):
                response = self.client.post("/v1/outreach/email", json=payload, headers=USER)
                self.assertEqual(response.status_code, 422, response.text)
        server_cls.assert_not_called()

    def test_delivery_failure_is_bad_gateway(self):
        server_cls, server = _server_class()
        server.send_message.side_effect = smtplib.SMTPServerDisconnected("gone")
        with patch.object(email_integration, "settings", _smtp_settings()), patch.object(
            email_integration.smtplib, "SMTP", server_cls
        ):
            response = self.client.post(
                "/v1/outreach/email",
                json={"to": "ana@acme.com", "subject": "Hello", "body": "Hi"},
                headers=USER,
            )
        self.assertEqual(response.status_code, 502)


if __name__ == "__main__":
    unittest.main()
