"""
Account state machine - OTP-gated lifecycle transitions.

This module contains the transition rules for the account lifecycle.
Every operation takes the current Account and returns the Account to
persist, or raises a domain exception. It performs no I/O; atomicity is
provided by the repository, which runs each transition under a
per-account lock.

Account State Machine
=====================

States (derived from flags, see AccountStatus):
- REGISTERED: account created, registration OTP outstanding
- VERIFIED:   registration OTP confirmed, awaiting admin approval
- ACTIVE:     approved by an administrator (out-of-band)

Valid Transitions:
    (none)     -> REGISTERED  create
    REGISTERED -> VERIFIED    confirm_registration
    VERIFIED   -> ACTIVE      admin approval (not modeled here)

Orthogonal OTP sub-state:
    resend_registration_otp  re-arms a registration OTP (REGISTERED only)
    issue_login_otp          re-arms a login OTP (ACTIVE only)
    confirm_login            consumes the login OTP, appends a login record
    record_logout            appends a logout record

OTP rules:
- At most one OTP is outstanding; issuing one overwrites the previous one.
- A supplied code must equal the stored code exactly (no normalization),
  must have been issued for the operation that consumes it, and must be
  younger than the validity window.
"""

import dataclasses
import secrets
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from email_validator import EmailNotValidError, validate_email

from .account import Account, LoginAction, LoginRecord, NewAccount, OtpPurpose
from .exceptions import (
    AlreadyVerified,
    EmailNotVerified,
    InvalidOtp,
    NotApproved,
    ValidationError,
)
from .otp import OtpGenerator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AccountStateMachine:
    """
    Pure transition rules for a single account.

    Attributes:
        otp_generator: Source of fresh one-time codes
        otp_ttl: How long an issued OTP stays usable
        clock: Returns the current UTC time
    """

    otp_generator: OtpGenerator = dataclasses.field(default_factory=OtpGenerator)
    otp_ttl: timedelta = timedelta(minutes=5)
    clock: Callable[[], datetime] = utcnow

    def create(self, fields: NewAccount) -> Account:
        """
        Build a new account with a registration OTP outstanding.

        Raises:
            ValidationError: If the email is missing or malformed
        """
        self._check_email(fields.email)
        now = self.clock()
        return Account(
            id=str(uuid.uuid4()),
            created_at=now,
            otp=self.otp_generator.generate(),
            otp_issued_at=now,
            otp_purpose=OtpPurpose.REGISTRATION,
            **dataclasses.asdict(fields),
        )

    def confirm_registration(self, account: Account, supplied_otp: str) -> Account:
        """
        Mark the email as verified.

        The registration OTP is left in place, so replaying the same code
        inside its validity window succeeds again and changes nothing.

        Raises:
            InvalidOtp: If the code is wrong, expired, or not a registration OTP
        """
        self._check_otp(account, supplied_otp, OtpPurpose.REGISTRATION)
        if account.email_verified and account.otp_verified:
            return account
        return dataclasses.replace(account, email_verified=True, otp_verified=True)

    def issue_login_otp(self, account: Account) -> Account:
        """
        Arm a fresh login OTP, replacing any outstanding one.

        Raises:
            EmailNotVerified: If the registration OTP was never confirmed
            NotApproved: If no administrator approved the account
        """
        if not account.email_verified:
            raise EmailNotVerified(account.email)
        if not account.approved_by_admin:
            raise NotApproved(account.email)
        return self._arm_otp(account, OtpPurpose.LOGIN)

    def confirm_login(self, account: Account, supplied_otp: str) -> Account:
        """
        Consume the login OTP and record the login.

        Raises:
            InvalidOtp: If the code is wrong, expired, or not a login OTP
        """
        self._check_otp(account, supplied_otp, OtpPurpose.LOGIN)
        now = self.clock()
        return dataclasses.replace(
            account,
            otp=None,
            otp_issued_at=None,
            otp_purpose=None,
            last_login_at=now,
            login_records=account.login_records + (LoginRecord(LoginAction.LOGIN, now),),
        )

    def record_logout(self, account: Account) -> Account:
        now = self.clock()
        return dataclasses.replace(
            account,
            login_records=account.login_records + (LoginRecord(LoginAction.LOGOUT, now),),
        )

    def resend_registration_otp(self, account: Account) -> Account:
        """
        Arm a fresh registration OTP.

        Raises:
            AlreadyVerified: If the registration OTP was already confirmed
        """
        if account.otp_verified:
            raise AlreadyVerified(account.email)
        return self._arm_otp(account, OtpPurpose.REGISTRATION)

    def session_claims(self, account: Account) -> dict[str, Any]:
        """Identity bound into the bearer token."""
        return {"id": account.id, "email": account.email, "user_type": account.user_type}

    def _arm_otp(self, account: Account, purpose: OtpPurpose) -> Account:
        return dataclasses.replace(
            account,
            otp=self.otp_generator.generate(),
            otp_issued_at=self.clock(),
            otp_purpose=purpose,
        )

    def _check_otp(self, account: Account, supplied_otp: str, purpose: OtpPurpose) -> None:
        stored = account.otp
        # Compare before any state-based rejection so every failure costs the same.
        matches = secrets.compare_digest(
            (stored or "").encode(), (supplied_otp or "").encode()
        )
        if stored is None or not matches or account.otp_purpose != purpose:
            raise InvalidOtp(account.email)
        if account.otp_issued_at is None or self.clock() - account.otp_issued_at > self.otp_ttl:
            raise InvalidOtp(account.email)

    def _check_email(self, email: str | None) -> None:
        if not email:
            raise ValidationError("email is required")
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError(str(e)) from e
