"""
Authentication domain service - account lifecycle orchestration.

This module sequences every lifecycle operation the same way:

1. Ask the repository to run one state-machine transition atomically
   for the account's email (the transition may raise to abort).
2. Only after the transition is committed, perform side effects:
   sign a session token, notify the account holder.

Delivery Policy
===============

The notifier may fail after the state change is already durable. That
failure is never rolled back:

- OTP-bearing messages (registration, login OTP, resend) re-raise
  DeliveryFailure, so the caller learns the code was issued but not sent.
- Informational notices (login success, logout) do not fail the
  operation: the failure is logged and returned as a warning on the
  result, next to the token or the recorded logout.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from functools import partial

from . import messages
from .account import Account, NewAccount
from .exceptions import DeliveryFailure, DuplicateEmail, EmailNotVerified, NotApproved
from .messages import Message
from .ports import Notifier, SessionSigner, UserRepository
from .state_machine import AccountStateMachine

logger = logging.getLogger(__name__)

NOTICE_NOT_SENT = "Notification email could not be sent"


@dataclass(frozen=True)
class LoginResult:
    """Public identity of a freshly authenticated account plus its token."""

    id: str
    name: str | None
    email: str
    user_type: str
    token: str
    warning: str | None = None


@dataclass(frozen=True)
class LogoutResult:
    """A recorded logout; warning is set when the notice was not delivered."""

    account: Account
    warning: str | None = None


@dataclass
class AuthService:
    """
    Domain service for the OTP-gated account lifecycle.

    Collaborators are injected by the process entry point; the service
    holds no state of its own.
    """

    repository: UserRepository
    notifier: Notifier
    signer: SessionSigner
    state_machine: AccountStateMachine
    session_ttl: timedelta = timedelta(hours=1)

    def register(self, fields: NewAccount) -> Account:
        """
        Create an account and mail it a registration OTP.

        Returns:
            The created account

        Raises:
            ValidationError: If the email is missing or malformed
            DuplicateEmail: If the email is already registered
            DeliveryFailure: If the OTP could not be sent (account is kept)
        """
        account = self.state_machine.create(fields)
        if not self.repository.create(account):
            raise DuplicateEmail(fields.email)

        logger.info("Account registered: %s", account.id)
        self._deliver(
            account.email,
            messages.registration_otp(account.name, account.otp, self._otp_minutes),
        )
        return account

    def verify_registration(self, email: str, otp: str) -> Account:
        """
        Confirm the registration OTP.

        Replaying a valid code is harmless: it succeeds again and sends
        nothing, because this operation never notifies.

        Raises:
            NotFound: If no account matches email
            InvalidOtp: If the code does not match or has expired
        """
        account = self.repository.update(
            email, partial(self.state_machine.confirm_registration, supplied_otp=otp)
        )
        logger.info("Email verified: %s", account.id)
        return account

    def request_login(self, email: str) -> Account:
        """
        Issue and mail a fresh login OTP.

        Raises:
            NotFound: If no account matches email
            EmailNotVerified: If registration was never confirmed
            NotApproved: If the account awaits admin approval
            DeliveryFailure: If the OTP could not be sent (OTP stays issued)
        """
        try:
            account = self.repository.update(email, self.state_machine.issue_login_otp)
        except (EmailNotVerified, NotApproved) as e:
            logger.warning("Login refused (%s): %s", type(e).__name__, email)
            raise
        logger.info("Login OTP issued: %s", account.id)
        self._deliver(
            account.email,
            messages.login_otp(account.name, account.otp, self._otp_minutes),
        )
        return account

    def verify_login(self, email: str, otp: str) -> LoginResult:
        """
        Exchange a login OTP for a bearer token.

        The token is returned even when the login notice fails; the
        result then carries a warning.

        Raises:
            NotFound: If no account matches email
            InvalidOtp: If the code does not match or has expired
        """
        account = self.repository.update(
            email, partial(self.state_machine.confirm_login, supplied_otp=otp)
        )
        token = self.signer.issue(self.state_machine.session_claims(account), self.session_ttl)
        logger.info("Login completed: %s", account.id)

        warning = self._notify(
            account.email, messages.login_success(account.name, account.last_login_at)
        )
        return LoginResult(
            id=account.id,
            name=account.name,
            email=account.email,
            user_type=account.user_type,
            token=token,
            warning=warning,
        )

    def logout(self, email: str) -> LogoutResult:
        """
        Record a logout in the audit trail.

        Issued tokens are stateless and stay valid until they expire.
        A failed logout notice is reported as a warning on the result.

        Raises:
            NotFound: If no account matches email
        """
        account = self.repository.update(email, self.state_machine.record_logout)
        logger.info("Logout recorded: %s", account.id)
        warning = self._notify(
            account.email,
            messages.logout_notice(account.name, account.login_records[-1].time),
        )
        return LogoutResult(account=account, warning=warning)

    def resend_registration_otp(self, email: str) -> Account:
        """
        Issue and mail a new registration OTP.

        Raises:
            NotFound: If no account matches email
            AlreadyVerified: If the email is already verified
            DeliveryFailure: If the OTP could not be sent (OTP stays issued)
        """
        account = self.repository.update(email, self.state_machine.resend_registration_otp)
        logger.info("Registration OTP re-issued: %s", account.id)
        self._deliver(
            account.email,
            messages.resend_otp(account.name, account.otp, self._otp_minutes),
        )
        return account

    def list_accounts(self) -> list[Account]:
        return self.repository.list_accounts()

    @property
    def _otp_minutes(self) -> int:
        return max(1, int(self.state_machine.otp_ttl.total_seconds() // 60))

    def _deliver(self, recipient: str, message: Message) -> None:
        try:
            self.notifier.send(recipient, message)
        except DeliveryFailure:
            logger.error("Delivery failed after commit: %s to %s", message.kind.value, recipient)
            raise

    def _notify(self, recipient: str, message: Message) -> str | None:
        """Send an informational notice; return a warning instead of raising."""
        try:
            self.notifier.send(recipient, message)
        except DeliveryFailure as e:
            logger.warning("Notice not delivered: %s to %s (%s)", message.kind.value, recipient, e)
            return NOTICE_NOT_SENT
        return None
