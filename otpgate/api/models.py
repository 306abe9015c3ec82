"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Request models reject unknown fields.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from otpgate.domain.account import AccountStatus, LoginAction, NewAccount


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, max_length=200)
    email: EmailStr
    phone: str | None = None
    council_id: str | None = None
    user_type: str = "intern"
    dob: date | None = None
    address: str | None = None
    gender: str | None = None
    nationality: str | None = None
    aadhaar: str | None = None
    passport: str | None = None
    pan_card: str | None = None

    def to_domain(self) -> NewAccount:
        return NewAccount(**self.model_dump())


class EmailRequest(BaseModel):
    """Request model for operations keyed only by email."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


class OtpRequest(BaseModel):
    """Request model for OTP confirmation."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=16, description="One-time code from email")


class MessageResponse(BaseModel):
    message: str


class LogoutResponse(MessageResponse):
    """Logout confirmation; warning is present only when the notice email failed."""

    warning: str | None = None


class LoginResponse(BaseModel):
    """Response model for a completed login."""

    id: str
    name: str | None
    email: str
    user_type: str
    token: str
    warning: str | None = Field(None, description="Present only when the login notice email failed")


class LoginRecordView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    action: LoginAction
    time: datetime


class AccountView(BaseModel):
    """Account as listed to operators. OTP fields are never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None
    phone: str | None
    user_type: str
    council_id: str | None
    status: AccountStatus
    email_verified: bool
    otp_verified: bool
    approved_by_admin: bool
    created_at: datetime
    last_login_at: datetime | None
    login_records: list[LoginRecordView]
    dob: date | None
    address: str | None
    gender: str | None
    nationality: str | None
    aadhaar: str | None
    passport: str | None
    pan_card: str | None


class UsersResponse(BaseModel):
    users: list[AccountView]


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
