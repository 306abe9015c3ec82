"""
In-memory repository adapter - Implements UserRepository protocol.

Keeps accounts in a dict and serializes updates per email with one
threading.Lock per account. Used for development and tests.
"""

import threading

from otpgate.domain.account import Account
from otpgate.domain.exceptions import NotFound
from otpgate.domain.ports import Transition


class InMemoryUserRepository:
    """
    Implements UserRepository protocol with process-local storage.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._store_lock = threading.Lock()

    def create(self, account: Account) -> bool:
        with self._store_lock:
            if account.email in self._accounts:
                return False
            self._accounts[account.email] = account
            self._locks[account.email] = threading.Lock()
            return True

    def get(self, email: str) -> Account | None:
        with self._store_lock:
            return self._accounts.get(email)

    def update(self, email: str, transition: Transition) -> Account:
        """
        Apply transition under the account's lock.

        The new value replaces the stored one only if transition returns;
        Account values are immutable, so an aborted transition leaves no
        trace.
        """
        with self._store_lock:
            lock = self._locks.get(email)
        if lock is None:
            raise NotFound(email)

        with lock:
            updated = transition(self._accounts[email])
            with self._store_lock:
                self._accounts[email] = updated
            return updated

    def list_accounts(self) -> list[Account]:
        with self._store_lock:
            return list(self._accounts.values())

    def put(self, account: Account) -> None:
        """Insert or replace an account as-is (seeding and admin tooling)."""
        with self._store_lock:
            self._accounts[account.email] = account
            self._locks.setdefault(account.email, threading.Lock())
