from __future__ import annotations

import logging
import smtplib
import socket
from email.message import EmailMessage
from typing import Optional, Protocol

import requests

from config import MailSettings
from utils.errors import MailDeliveryError


logger = logging.getLogger("notes.mail")

BREVO_URL = "https://api.brevo.com/v3/smtp/email"


class Mailer(Protocol):
    def send(self, *, to_email: str, subject: str, html: str, text: Optional[str] = None) -> None:
        ...


class SmtpMailer:
    """
    Sends mail through an SMTP relay (e.g. Gmail with an App Password).

    Port 465 uses implicit TLS, anything else is upgraded with STARTTLS.
    """

    def __init__(self, settings: MailSettings):
        self.settings = settings

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.port == 465:
            return smtplib.SMTP_SSL(s.host, s.port, timeout=s.timeout_seconds)
        conn = smtplib.SMTP(s.host, s.port, timeout=s.timeout_seconds)
        try:
            conn.starttls()
        except (smtplib.SMTPException, OSError):
            conn.close()
            raise
        return conn

    def send(self, *, to_email: str, subject: str, html: str, text: Optional[str] = None) -> None:
        s = self.settings
        msg = EmailMessage()
        msg["From"] = f"{s.from_name} <{s.sender}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(text or "Please view this message in an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")

        try:
            with self._connect() as conn:
                conn.login(s.user, s.password)
                conn.send_message(msg)
        except (smtplib.SMTPException, socket.timeout, OSError) as e:
            logger.error("SMTP send failed host=%s port=%s to=%s: %s", s.host, s.port, to_email, e)
            raise MailDeliveryError(f"SMTP send failed: {e}") from e
        logger.info("mail sent using=smtp to=%s", to_email)


class BrevoMailer:
    """Sends email using Brevo Transactional Email API."""

    def __init__(self, settings: MailSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.http = session or requests.Session()

    def send(self, *, to_email: str, subject: str, html: str, text: Optional[str] = None) -> None:
        s = self.settings
        payload = {
            "sender": {"email": s.sender, "name": s.from_name},
            "to": [{"email": to_email}],
            "subject": subject,
            "htmlContent": html,
        }
        if text:
            payload["textContent"] = text

        try:
            resp = self.http.post(
                BREVO_URL,
                headers={
                    "accept": "application/json",
                    "api-key": s.brevo_api_key,
                    "content-type": "application/json",
                },
                json=payload,
                timeout=s.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.error("Brevo HTTP error to=%s: %s", to_email, e)
            raise MailDeliveryError(f"Brevo request failed: {e}") from e
        if resp.status_code >= 300:
            logger.error("Brevo send failed status=%s body=%s", resp.status_code, resp.text)
            raise MailDeliveryError(f"Brevo send failed ({resp.status_code})")
        logger.info("mail sent using=brevo to=%s", to_email)


def build_mailer(settings: MailSettings) -> Mailer:
    if settings.transport == "brevo":
        return BrevoMailer(settings)
    return SmtpMailer(settings)
