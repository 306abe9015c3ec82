"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Callable
from datetime import timedelta
from typing import Any, Protocol

from .account import Account
from .messages import Message

# A state-machine step: takes the current row, returns the row to persist.
# Raising aborts the update and nothing is written.
Transition = Callable[[Account], Account]


class UserRepository(Protocol):
    """Port interface for account persistence, keyed by email."""

    def create(self, account: Account) -> bool:
        """
        Atomically insert a new account.

        Args:
            account: Fully initialized account produced by the state machine

        Returns:
            True if inserted, False if an account with that email already exists

        Raises:
            RepositoryFailure: If storage is unavailable
        """
        ...

    def get(self, email: str) -> Account | None:
        """Return the account for email, or None if absent."""
        ...

    def update(self, email: str, transition: Transition) -> Account:
        """
        Apply a transition to one account atomically.

        The read, the transition call and the write happen under a
        per-account lock (row lock or mutex), so concurrent updates to the
        same email are serialized. If the transition raises, nothing is
        written and the exception propagates.

        Args:
            email: Account email, matched exactly
            transition: Pure function from current to new account state

        Returns:
            The account as persisted

        Raises:
            NotFound: If no account matches email
            RepositoryFailure: If storage is unavailable
        """
        ...

    def list_accounts(self) -> list[Account]:
        """Return all accounts in creation order."""
        ...


class Notifier(Protocol):
    """Port interface for outbound email delivery."""

    def send(self, recipient: str, message: Message) -> None:
        """
        Deliver a rendered message.

        Raises:
            DeliveryFailure: If the message could not be handed off
        """
        ...


class SessionSigner(Protocol):
    """Port interface for bearer token issuance and validation."""

    def issue(self, claims: dict[str, Any], ttl: timedelta) -> str:
        """Sign claims into an opaque bearer token valid for ttl."""
        ...

    def validate(self, token: str) -> dict[str, Any]:
        """
        Verify a token and return its claims.

        Raises:
            InvalidToken: If the signature is bad or the token has expired
        """
        ...
