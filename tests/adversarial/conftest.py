"""
Shared fixtures for adversarial tests.

Attacks run against the real AuthService on in-memory storage with a
recording notifier, so every code an attacker could receive is visible.
"""

import threading
from collections.abc import Callable

import pytest

from otpgate.adapters.repository.memory import InMemoryUserRepository
from otpgate.domain.account import Account
from otpgate.domain.messages import Message

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


class RecordingNotifier:
    """Thread-safe notifier that keeps every message it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, Message]] = []
        self._lock = threading.Lock()

    def send(self, recipient: str, message: Message) -> None:
        with self._lock:
            self.sent.append((recipient, message))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def seeded(
    make_account: Callable[..., Account], repository: InMemoryUserRepository
) -> Callable[..., Account]:
    """Store an account built from overrides and return it."""

    def factory(**overrides: object) -> Account:
        account = make_account(**overrides)
        repository.put(account)
        return account

    return factory
