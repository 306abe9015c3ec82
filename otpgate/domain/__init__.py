"""
Domain layer - Pure business logic with zero framework imports.

This package contains the OTP-gated account state machine and the
service that orchestrates it. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture
decoupling.
"""

from .account import Account, AccountStatus, LoginAction, LoginRecord, NewAccount, OtpPurpose
from .auth import AuthService, LoginResult, LogoutResult
from .exceptions import (
    AccountError,
    AlreadyVerified,
    DeliveryFailure,
    DuplicateEmail,
    EmailNotVerified,
    InvalidOtp,
    InvalidToken,
    NotApproved,
    NotFound,
    RepositoryFailure,
    ValidationError,
)
from .messages import Message, NotificationKind
from .otp import OtpGenerator
from .ports import Notifier, SessionSigner, UserRepository
from .state_machine import AccountStateMachine

__all__ = [
    "Account",
    "AccountError",
    "AccountStateMachine",
    "AccountStatus",
    "AlreadyVerified",
    "AuthService",
    "DeliveryFailure",
    "DuplicateEmail",
    "EmailNotVerified",
    "InvalidOtp",
    "InvalidToken",
    "LoginAction",
    "LoginRecord",
    "LoginResult",
    "LogoutResult",
    "Message",
    "NewAccount",
    "NotApproved",
    "NotFound",
    "NotificationKind",
    "Notifier",
    "OtpGenerator",
    "OtpPurpose",
    "RepositoryFailure",
    "SessionSigner",
    "UserRepository",
    "ValidationError",
]
