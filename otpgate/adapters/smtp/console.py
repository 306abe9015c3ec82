"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging messages to stdout for demo purposes.
"""

import logging
import re

from otpgate.domain.messages import Message

logger = logging.getLogger(__name__)

_TAG = re.compile(r"<[^>]+>")


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints messages (OTPs included) to stdout.
    """

    def send(self, recipient: str, message: Message) -> None:
        """
        Log the message to console (simulates email delivery).

        The HTML body is flattened to text. Logged at INFO level to be
        visible in container logs.

        Args:
            recipient: Recipient email address
            message: Rendered message
        """
        text = " ".join(_TAG.sub(" ", message.html).split())
        logger.info(
            "[%s] To: %s Subject: %s Body: %s",
            message.kind.value.upper(),
            recipient,
            message.subject,
            text,
        )
