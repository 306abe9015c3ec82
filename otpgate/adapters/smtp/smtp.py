"""
SMTP notifier adapter - Implements Notifier protocol.

Delivers HTML messages through an SMTP relay (Gmail-style submission on
port 587 with STARTTLS and login). A connection is opened per message,
so the notifier holds no socket between requests and is safe to share
across worker threads.
"""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from otpgate.domain.exceptions import DeliveryFailure
from otpgate.domain.messages import Message

logger = logging.getLogger(__name__)


class SmtpNotifier:
    """
    Implements Notifier protocol via smtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        sender_name: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = formataddr((sender_name, username)) if sender_name else username
        self._use_tls = use_tls
        self._timeout = timeout

    def _new_connection(self) -> smtplib.SMTP:
        return smtplib.SMTP(host=self._host, port=self._port, timeout=self._timeout)

    def build(self, recipient: str, message: Message) -> EmailMessage:
        email = EmailMessage()
        email["From"] = self._sender
        email["To"] = recipient
        email["Subject"] = message.subject
        email.set_content(message.subject)
        email.add_alternative(message.html, subtype="html")
        return email

    def send(self, recipient: str, message: Message) -> None:
        """
        Send one message.

        Raises:
            DeliveryFailure: On any SMTP or socket error
        """
        email = self.build(recipient, message)
        try:
            with self._new_connection() as conn:
                if self._use_tls:
                    conn.starttls()
                if self._username:
                    conn.login(self._username, self._password)
                conn.send_message(email)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery of %s to %s failed: %s", message.kind.value, recipient, e)
            raise DeliveryFailure(f"could not deliver {message.kind.value}") from e

        logger.info("Delivered %s to %s", message.kind.value, recipient)
