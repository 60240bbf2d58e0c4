import asyncio
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from portfolio_api.config import Config
from portfolio_api.notify.email import EmailNotifier, build_contact_notification

CONTACT = {
    "_id": "abc",
    "name": "<script>alert(1)</script>",
    "email": "jane@example.com",
    "subject": "Hi & welcome",
    "message": "Line one\nLine two",
    "createdAt": datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
}


def _cfg(**kw):
    base = dict(JWT_SECRET="s", SMTP_HOST="smtp.example.com", ADMIN_EMAIL="owner@example.com")
    base.update(kw)
    return Config(**base)


class TestBuildNotification:
    def test_headers(self):
        msg = build_contact_notification(CONTACT, sender="noreply@example.com", recipient="owner@example.com")
        assert msg["To"] == "owner@example.com"
        assert msg["From"] == "noreply@example.com"
        assert msg["Reply-To"] == "jane@example.com"
        assert msg["Subject"].startswith("[Portfolio] New message from")

    def test_html_part_escapes_submitted_values(self):
        msg = build_contact_notification(CONTACT, sender="a@example.com", recipient="b@example.com")
        html = msg.get_body(preferencelist=("html",)).get_content()
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "Hi &amp; welcome" in html
        assert "2024-05-01 12:30 UTC" in html

        text = msg.get_body(preferencelist=("plain",)).get_content()
        assert "Line one\nLine two" in text


class TestEmailNotifier:
    def test_skips_when_not_configured(self, caplog):
        notifier = EmailNotifier(_cfg(ADMIN_EMAIL=None))
        assert not notifier.configured
        with patch("portfolio_api.notify.email.smtplib.SMTP") as smtp:
            assert asyncio.run(notifier.send_contact_notification(CONTACT)) is False
        smtp.assert_not_called()
        assert "Admin email not configured" in caplog.text

    def test_sends_with_starttls_and_login(self):
        notifier = EmailNotifier(_cfg(SMTP_USER="u", SMTP_PASS="p"))
        server = MagicMock()
        server.__enter__.return_value = server
        server.has_extn.return_value = True
        with patch("portfolio_api.notify.email.smtplib.SMTP", return_value=server) as smtp:
            assert asyncio.run(notifier.send_contact_notification(CONTACT)) is True

        smtp.assert_called_once_with("smtp.example.com", 587, timeout=15.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("u", "p")
        sent = server.send_message.call_args.args[0]
        assert sent["To"] == "owner@example.com"

    def test_implicit_tls(self):
        notifier = EmailNotifier(_cfg(SMTP_SECURE=True, SMTP_PORT=465))
        server = MagicMock()
        server.__enter__.return_value = server
        with patch("portfolio_api.notify.email.smtplib.SMTP_SSL", return_value=server) as smtp_ssl:
            assert asyncio.run(notifier.send_contact_notification(CONTACT)) is True
        smtp_ssl.assert_called_once()
        server.starttls.assert_not_called()
        server.login.assert_not_called()

    def test_transport_failure_returns_false(self, caplog):
        notifier = EmailNotifier(_cfg())
        with patch("portfolio_api.notify.email.smtplib.SMTP", side_effect=OSError("connection refused")):
            assert asyncio.run(notifier.send_contact_notification(CONTACT)) is False
        assert "Failed to send contact notification" in caplog.text
