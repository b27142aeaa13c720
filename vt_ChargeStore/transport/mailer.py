# vt_ChargeStore/transport/mailer.py
from __future__ import annotations
from email.message import EmailMessage
from typing import Protocol
import logging
import smtplib

_LOG = logging.getLogger(__name__)


class Mailer(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> bool: ...


class LogMailer:
    """Stand-in transport: records the message in the log instead of sending it."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> bool:
        self.sent.append((recipient, subject, body))
        _LOG.info("[mail] to=%s subject=%s (%d chars, not sent: no SMTP host configured)",
                  recipient, subject, len(body))
        return True


class SmtpMailer:
    def __init__(self, host: str, port: int = 25, sender: str = "",
                 username: str | None = None, password: str | None = None,
                 use_tls: bool = False, timeout: float = 30.0):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def send(self, recipient: str, subject: str, body: str) -> bool:
        msg = self._message(recipient, subject, body)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(msg)
        _LOG.debug("sent '%s' to %s via %s:%d", subject, recipient, self.host, self.port)
        return True


def mailer_from_config(cfg: dict | None) -> Mailer:
    """SMTP when ``mail.host`` is set, otherwise LogMailer."""
    m = (cfg or {}).get("mail", {}) or {}
    host = m.get("host")
    if not host:
        return LogMailer()
    return SmtpMailer(
        host=str(host),
        port=int(m.get("port", 25)),
        sender=str(m.get("sender", "")),
        username=m.get("username") or None,
        password=m.get("password") or None,
        use_tls=bool(m.get("use_tls", False)),
    )
