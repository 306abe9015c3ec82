"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for OTP expiry
- The state machine and in-memory repository
- The auth service with a mocked notifier
- An account factory for seeding arbitrary lifecycle states
"""

import dataclasses
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from otpgate.adapters.repository.memory import InMemoryUserRepository
from otpgate.adapters.signer.tokens import JwtSessionSigner
from otpgate.domain.account import Account, OtpPurpose
from otpgate.domain.auth import AuthService
from otpgate.domain.otp import OtpGenerator
from otpgate.domain.state_machine import AccountStateMachine

START = datetime(2025, 1, 6, 9, 30, tzinfo=timezone.utc)
TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def state_machine(clock: FrozenClock) -> AccountStateMachine:
    return AccountStateMachine(
        otp_generator=OtpGenerator(),
        otp_ttl=timedelta(minutes=5),
        clock=clock,
    )


@pytest.fixture
def repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def signer() -> JwtSessionSigner:
    return JwtSessionSigner(TEST_SECRET)


@pytest.fixture
def service(
    repository: InMemoryUserRepository,
    notifier: Mock,
    signer: JwtSessionSigner,
    state_machine: AccountStateMachine,
) -> AuthService:
    return AuthService(
        repository=repository,
        notifier=notifier,
        signer=signer,
        state_machine=state_machine,
    )


@pytest.fixture
def make_account(clock: FrozenClock) -> Callable[..., Account]:
    """
    Build an Account in any lifecycle state.

    Defaults to a freshly registered account holding registration OTP 123456.
    """

    def factory(**overrides: object) -> Account:
        account = Account(
            id=str(uuid.uuid4()),
            email="a@x.com",
            name="Asha",
            created_at=clock(),
            otp="123456",
            otp_issued_at=clock(),
            otp_purpose=OtpPurpose.REGISTRATION,
        )
        return dataclasses.replace(account, **overrides)

    return factory


@pytest.fixture
def active_account(
    make_account: Callable[..., Account], repository: InMemoryUserRepository
) -> Account:
    """Verified, approved account with no OTP outstanding, stored in the repository."""
    account = make_account(
        email_verified=True,
        otp_verified=True,
        approved_by_admin=True,
        otp=None,
        otp_issued_at=None,
        otp_purpose=None,
    )
    repository.put(account)
    return account
