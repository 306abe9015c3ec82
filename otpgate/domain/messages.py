"""
Notification templates.

Each operation that notifies the account holder has exactly one fixed
template. Rendering is deterministic: the same inputs always produce the
same subject and body.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from html import escape


class NotificationKind(str, Enum):
    REGISTRATION_OTP = "registration_otp"
    LOGIN_OTP = "login_otp"
    LOGIN_SUCCESS = "login_success"
    LOGOUT_NOTICE = "logout_notice"
    RESEND_OTP = "resend_otp"


@dataclass(frozen=True)
class Message:
    kind: NotificationKind
    subject: str
    html: str


_FOOTER = "<p>Do not share one-time codes with anyone.</p>"


def _greeting_name(name: str | None) -> str:
    return escape(name) if name else "there"


def _format_time(at: datetime) -> str:
    return at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def registration_otp(name: str | None, otp: str, valid_minutes: int) -> Message:
    return Message(
        kind=NotificationKind.REGISTRATION_OTP,
        subject="Verify Your Registration",
        html=(
            f"<h2>Welcome {_greeting_name(name)}</h2>"
            "<p>Thank you for registering. Please verify your email with the OTP below:</p>"
            f"<h3>{otp}</h3>"
            f"<p>This OTP expires in {valid_minutes} minutes.</p>"
            "<p>Next steps:</p>"
            "<ul>"
            "<li>Verify your email using the OTP above</li>"
            "<li>Wait for admin approval before logging in</li>"
            "<li>Once approved, you can log in and manage your profile</li>"
            "</ul>"
            f"{_FOOTER}"
        ),
    )


def login_otp(name: str | None, otp: str, valid_minutes: int) -> Message:
    return Message(
        kind=NotificationKind.LOGIN_OTP,
        subject="Login OTP",
        html=(
            f"<h2>Hello {_greeting_name(name)}</h2>"
            "<p>Your login OTP is:</p>"
            f"<h3>{otp}</h3>"
            f"<p>This OTP expires in {valid_minutes} minutes.</p>"
            f"{_FOOTER}"
        ),
    )


def login_success(name: str | None, at: datetime) -> Message:
    return Message(
        kind=NotificationKind.LOGIN_SUCCESS,
        subject="Login Successful",
        html=(
            f"<h2>Welcome back, {_greeting_name(name)}</h2>"
            f"<p>You have successfully logged in at {_format_time(at)}.</p>"
        ),
    )


def logout_notice(name: str | None, at: datetime) -> Message:
    return Message(
        kind=NotificationKind.LOGOUT_NOTICE,
        subject="Logout Notification",
        html=(
            f"<h2>Goodbye, {_greeting_name(name)}</h2>"
            f"<p>You logged out at {_format_time(at)}.</p>"
            "<p>See you soon!</p>"
        ),
    )


def resend_otp(name: str | None, otp: str, valid_minutes: int) -> Message:
    return Message(
        kind=NotificationKind.RESEND_OTP,
        subject="Resend OTP - Email Verification",
        html=(
            f"<h2>Hello {_greeting_name(name)}</h2>"
            "<p>Your new OTP for email verification is:</p>"
            f"<h3>{otp}</h3>"
            f"<p>This OTP expires in {valid_minutes} minutes. "
            "Use it to verify your registration.</p>"
            f"{_FOOTER}"
        ),
    )
