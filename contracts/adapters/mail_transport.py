"""Outbound mail transports used by EmailNotifier."""

from __future__ import annotations

import logging
import smtplib
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import List, Optional, Tuple

from contracts.exceptions.errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailMessage:
    to: Tuple[str, ...]
    subject: str
    text: str
    sender: str
    headers: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def to_email_message(self) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = ", ".join(self.to)
        msg["Subject"] = self.subject
        for name, value in self.headers:
            msg[name] = value
        msg.set_content(self.text)
        return msg


class MailTransport(ABC):
    @abstractmethod
    def send(self, message: MailMessage) -> None:
        """Deliver *message*; raise ExternalServiceError on failure."""
        raise NotImplementedError


class SmtpMailTransport(MailTransport):
    def __init__(
        self,
        host: str,
        port: int = 25,
        *,
        user: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._starttls = starttls
        self._timeout = timeout

    def send(self, message: MailMessage) -> None:
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                if self._starttls:
                    smtp.starttls()
                if self._user:
                    smtp.login(self._user, self._password or "")
                smtp.send_message(message.to_email_message())
        except (smtplib.SMTPException, OSError) as exc:
            raise ExternalServiceError(f"SMTP delivery to {', '.join(message.to)} failed: {exc}") from exc
        logger.debug("Mail sent to %s: %s", ", ".join(message.to), message.subject)


class OutboxMailTransport(MailTransport):
    """Keeps messages in memory (tests, dry runs)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sent: List[MailMessage] = []

    def send(self, message: MailMessage) -> None:
        with self._lock:
            self._sent.append(message)

    @property
    def sent(self) -> List[MailMessage]:
        with self._lock:
            return list(self._sent)

    def clear(self) -> None:
        with self._lock:
            self._sent.clear()
