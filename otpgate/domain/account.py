"""
Account data model.

Accounts are immutable values. The state machine derives a new Account
for every accepted transition and the repository persists it whole.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class AccountStatus(str, Enum):
    """
    Account lifecycle states, derived from the verification flags.

    State Transitions (forward-only):
    - REGISTERED -> VERIFIED (registration OTP confirmed)
    - VERIFIED -> ACTIVE (administrator approval, out-of-band)

    Whether an OTP is outstanding is orthogonal to the status: every
    login request re-arms it while the account stays ACTIVE.
    """

    REGISTERED = "REGISTERED"
    VERIFIED = "VERIFIED"
    ACTIVE = "ACTIVE"


class OtpPurpose(str, Enum):
    """What an outstanding OTP may be exchanged for."""

    REGISTRATION = "registration"
    LOGIN = "login"


class LoginAction(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"


@dataclass(frozen=True)
class LoginRecord:
    """One audit trail entry."""

    action: LoginAction
    time: datetime


@dataclass(frozen=True)
class NewAccount:
    """Fields accepted at registration. Profile fields are pass-through."""

    email: str
    name: str | None = None
    phone: str | None = None
    user_type: str = "intern"
    council_id: str | None = None
    dob: date | None = None
    address: str | None = None
    gender: str | None = None
    nationality: str | None = None
    aadhaar: str | None = None
    passport: str | None = None
    pan_card: str | None = None


@dataclass(frozen=True)
class Account:
    """Persistent identity record, one per unique email."""

    id: str
    email: str
    created_at: datetime
    name: str | None = None
    phone: str | None = None
    user_type: str = "intern"
    council_id: str | None = None

    email_verified: bool = False
    otp_verified: bool = False
    approved_by_admin: bool = False

    otp: str | None = None
    otp_issued_at: datetime | None = None
    otp_purpose: OtpPurpose | None = None

    login_records: tuple[LoginRecord, ...] = field(default_factory=tuple)
    last_login_at: datetime | None = None

    dob: date | None = None
    address: str | None = None
    gender: str | None = None
    nationality: str | None = None
    aadhaar: str | None = None
    passport: str | None = None
    pan_card: str | None = None

    @property
    def status(self) -> AccountStatus:
        if not self.email_verified:
            return AccountStatus.REGISTERED
        if not self.approved_by_admin:
            return AccountStatus.VERIFIED
        return AccountStatus.ACTIVE

    @property
    def otp_outstanding(self) -> bool:
        return self.otp is not None
