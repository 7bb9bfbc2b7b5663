from __future__ import annotations

import logging
import os
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

import requests


logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 20


class EmailDeliveryError(RuntimeError):
    pass


def _sender() -> tuple[str, str]:
    from_email = os.getenv("EMAIL_FROM") or os.getenv("SMTP_USER")
    if not from_email:
        raise EmailDeliveryError("EMAIL_FROM (or SMTP_USER) is not set")
    return os.getenv("EMAIL_FROM_NAME", "Verification System"), from_email


def send_email(*, to_email: str, subject: str, html: str, text: Optional[str] = None) -> str:
    """
    Sends one message and returns the transport's delivery identifier.

    EMAIL_BACKEND selects the transport:
      - smtp (default): SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS
      - brevo: BREVO_API_KEY
    """
    backend = (os.getenv("EMAIL_BACKEND") or "smtp").strip().lower()
    if backend == "brevo":
        return _send_brevo(to_email=to_email, subject=subject, html=html, text=text)
    if backend == "smtp":
        return _send_smtp(to_email=to_email, subject=subject, html=html, text=text)
    raise EmailDeliveryError(f"Unknown EMAIL_BACKEND: {backend}")


def _send_smtp(*, to_email: str, subject: str, html: str, text: Optional[str]) -> str:
    host = os.getenv("SMTP_HOST")
    if not host:
        raise EmailDeliveryError("SMTP_HOST is not set")
    port = int(os.getenv("SMTP_PORT") or "587")
    user = os.getenv("SMTP_USER")
    password = os.getenv("SMTP_PASS")
    from_name, from_email = _sender()

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = formataddr((from_name, from_email))
    msg["To"] = to_email
    message_id = make_msgid(domain=from_email.rpartition("@")[2] or None)
    msg["Message-ID"] = message_id
    # Plain text first, HTML as the preferred alternative.
    msg.set_content(text or "Open this message in an HTML-capable email client.")
    msg.add_alternative(html, subtype="html")

    try:
        if port == 465:
            server = smtplib.SMTP_SSL(host, port, timeout=SMTP_TIMEOUT_SECONDS)
        else:
            server = smtplib.SMTP(host, port, timeout=SMTP_TIMEOUT_SECONDS)
        with server:
            if port != 465:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
            if user and password:
                server.login(user, password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailDeliveryError(f"SMTP send failed: {exc}") from exc

    return message_id


def _send_brevo(*, to_email: str, subject: str, html: str, text: Optional[str]) -> str:
    api_key = os.getenv("BREVO_API_KEY")
    if not api_key:
        raise EmailDeliveryError("BREVO_API_KEY is not set")
    from_name, from_email = _sender()

    payload = {
        "sender": {"email": from_email, "name": from_name},
        "to": [{"email": to_email}],
        "subject": subject,
        "htmlContent": html,
    }
    if text:
        payload["textContent"] = text

    try:
        resp = requests.post(
            "https://api.brevo.com/v3/smtp/email",
            headers={
                "accept": "application/json",
                "api-key": api_key,
                "content-type": "application/json",
            },
            json=payload,
            timeout=15,
        )
    except requests.RequestException as exc:
        raise EmailDeliveryError(f"Brevo request failed: {exc}") from exc

    if resp.status_code >= 300:
        raise EmailDeliveryError(f"Brevo send failed ({resp.status_code}): {resp.text}")

    try:
        data = resp.json()
    except ValueError:
        data = {}
    return str(data.get("messageId") or "")
