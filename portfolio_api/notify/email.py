from __future__ import annotations

import asyncio
import html
import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from typing import Any, Dict

from portfolio_api.config import Config

log = logging.getLogger("portfolio.email")


def _format_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M UTC")
    return str(value or "")


def build_contact_notification(contact: Dict[str, Any], *, sender: str, recipient: str) -> EmailMessage:
    """Plain-text + HTML notification for one contact message.

    All submitted values are HTML-escaped: they come straight from a public form.
    """

    name = str(contact.get("name") or "")
    email = str(contact.get("email") or "")
    subject = str(contact.get("subject") or "")
    body = str(contact.get("message") or "")
    when = _format_date(contact.get("createdAt"))

    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = f"[Portfolio] New message from {name}"
    if email:
        msg["Reply-To"] = email

    msg.set_content(
        f"New contact message\n\n"
        f"Name:    {name}\n"
        f"Email:   {email}\n"
        f"Subject: {subject}\n"
        f"Date:    {when}\n\n"
        f"{body}\n"
    )

    e = html.escape
    msg.add_alternative(
        f"""\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; background: #f5f5f5; padding: 20px;">
    <div style="max-width: 600px; margin: 0 auto; background: #fff; border-radius: 12px; overflow: hidden;">
      <div style="background: #1e40af; color: #fff; padding: 24px; text-align: center;">
        <h1 style="font-size: 22px; margin: 0;">New contact message</h1>
        <p style="margin: 8px 0 0;">Someone reached out through your portfolio</p>
      </div>
      <div style="padding: 24px;">
        <p><strong>Name:</strong> {e(name)}</p>
        <p><strong>Email:</strong> <a href="mailto:{e(email, quote=True)}">{e(email)}</a></p>
        <p><strong>Subject:</strong> {e(subject)}</p>
        <p><strong>Date:</strong> {e(when)}</p>
        <div style="border: 1px solid #e2e8f0; border-radius: 8px; padding: 16px; white-space: pre-wrap;">{e(body)}</div>
      </div>
      <div style="background: #f8fafc; padding: 16px; text-align: center; color: #64748b; font-size: 13px;">
        Automatic notification from the portfolio contact form.
      </div>
    </div>
  </body>
</html>
""",
        subtype="html",
    )
    return msg


class EmailNotifier:
    """Sends the site owner an email for each new contact message.

    Best effort: send_contact_notification() never raises and never retries.
    """

    def __init__(self, cfg: Config) -> None:
        self._cfg = cfg

    @property
    def configured(self) -> bool:
        return bool(self._cfg.ADMIN_EMAIL and self._cfg.SMTP_HOST)

    async def send_contact_notification(self, contact: Dict[str, Any]) -> bool:
        cfg = self._cfg
        if not cfg.ADMIN_EMAIL:
            log.warning("Admin email not configured. Skipping notification.")
            return False
        if not cfg.SMTP_HOST:
            log.warning("SMTP host not configured. Skipping notification.")
            return False

        try:
            msg = build_contact_notification(contact, sender=cfg.SMTP_FROM, recipient=cfg.ADMIN_EMAIL)
            await asyncio.to_thread(self._send, msg)
        except Exception:
            log.exception("Failed to send contact notification to %s", cfg.ADMIN_EMAIL)
            return False

        log.info("Contact notification sent to %s", cfg.ADMIN_EMAIL)
        return True

    def _send(self, msg: EmailMessage) -> None:
        cfg = self._cfg
        host = str(cfg.SMTP_HOST)
        timeout = cfg.SMTP_TIMEOUT_SECONDS
        if cfg.SMTP_SECURE:
            server: smtplib.SMTP = smtplib.SMTP_SSL(host, cfg.SMTP_PORT, timeout=timeout)
        else:
            server = smtplib.SMTP(host, cfg.SMTP_PORT, timeout=timeout)

        with server:
            if not cfg.SMTP_SECURE:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
            if cfg.SMTP_USER and cfg.SMTP_PASS:
                server.login(cfg.SMTP_USER, cfg.SMTP_PASS)
            server.send_message(msg)
