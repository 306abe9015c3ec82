"""
Adversarial tests for race condition attack prevention.

Verifies that concurrent operations on the same email are serialized,
preventing attackers from exploiting races to:
- Create duplicate accounts
- Redeem one login code twice
- Lose audit trail entries through interleaved writes
"""

import re
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

import pytest

from otpgate.adapters.repository.memory import InMemoryUserRepository
from otpgate.domain.account import Account, LoginAction, NewAccount
from otpgate.domain.auth import AuthService
from otpgate.domain.exceptions import DuplicateEmail, InvalidOtp
from otpgate.domain.messages import NotificationKind

# Apply adversarial marker to all tests in this module
pytestmark = pytest.mark.adversarial

_CODE = re.compile(r"<h3>(\d{6})</h3>")
ATTACKERS = 8


def run_concurrently(action: Callable[[int], object], count: int = ATTACKERS) -> list[object]:
    """Start count calls at once; return each result or raised exception."""
    barrier = threading.Barrier(count)

    def attempt(i: int) -> object:
        barrier.wait()
        try:
            return action(i)
        except Exception as e:
            return e

    with ThreadPoolExecutor(max_workers=count) as executor:
        return list(executor.map(attempt, range(count)))


class TestConcurrentRegistration:
    def test_exactly_one_registration_succeeds(
        self, service: AuthService, repository: InMemoryUserRepository, notifier
    ) -> None:
        results = run_concurrently(
            lambda i: service.register(NewAccount(email="attack@x.com", name=f"Attacker {i}"))
        )

        created = [r for r in results if isinstance(r, Account)]
        rejected = [r for r in results if isinstance(r, DuplicateEmail)]
        assert len(created) == 1
        assert len(rejected) == ATTACKERS - 1
        assert len(repository.list_accounts()) == 1
        assert repository.get("attack@x.com").id == created[0].id
        assert len(notifier.sent) == 1

    def test_repository_create_is_atomic(
        self, repository: InMemoryUserRepository, make_account: Callable[..., Account]
    ) -> None:
        results = run_concurrently(lambda i: repository.create(make_account(email="race@x.com")))

        assert results.count(True) == 1
        assert results.count(False) == ATTACKERS - 1


class TestConcurrentLoginRequests:
    def test_stored_code_is_one_that_was_mailed(
        self,
        service: AuthService,
        repository: InMemoryUserRepository,
        notifier,
        active_account: Account,
    ) -> None:
        run_concurrently(lambda i: service.request_login(active_account.email))

        mailed = {
            _CODE.search(message.html).group(1)
            for _, message in notifier.sent
            if message.kind == NotificationKind.LOGIN_OTP
        }
        assert len(notifier.sent) == ATTACKERS
        assert repository.get(active_account.email).otp in mailed


class TestConcurrentLoginVerification:
    def test_login_code_redeemed_once(
        self,
        service: AuthService,
        repository: InMemoryUserRepository,
        active_account: Account,
    ) -> None:
        service.request_login(active_account.email)
        otp = repository.get(active_account.email).otp

        results = run_concurrently(lambda i: service.verify_login(active_account.email, otp))

        tokens = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, InvalidOtp)]
        assert len(tokens) == 1
        assert len(failures) == ATTACKERS - 1
        records = repository.get(active_account.email).login_records
        assert [r.action for r in records] == [LoginAction.LOGIN]


class TestConcurrentAuditAppends:
    def test_no_logout_record_lost(
        self,
        service: AuthService,
        repository: InMemoryUserRepository,
        active_account: Account,
    ) -> None:
        run_concurrently(lambda i: service.logout(active_account.email), count=20)

        records = repository.get(active_account.email).login_records
        assert len(records) == 20
        assert all(r.action == LoginAction.LOGOUT for r in records)

    def test_accounts_do_not_block_each_other(
        self,
        service: AuthService,
        repository: InMemoryUserRepository,
        make_account: Callable[..., Account],
    ) -> None:
        emails = [f"user{i}@x.com" for i in range(ATTACKERS)]
        for email in emails:
            repository.put(
                make_account(
                    email=email,
                    email_verified=True,
                    otp_verified=True,
                    approved_by_admin=True,
                )
            )

        run_concurrently(lambda i: service.logout(emails[i]))

        for email in emails:
            assert len(repository.get(email).login_records) == 1
