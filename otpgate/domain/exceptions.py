"""
Domain exceptions - Semantic error types for the account lifecycle.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
The API layer maps each of them to a caller-visible status code.
"""


class AccountError(Exception):
    """Base class for account domain errors."""

    pass


class ValidationError(AccountError):
    """Input is missing or malformed."""

    pass


class DuplicateEmail(AccountError):
    """An account with this email already exists."""

    pass


class NotFound(AccountError):
    """No account matches the email."""

    pass


class InvalidOtp(AccountError):
    """Supplied code does not match the outstanding OTP, or it has expired."""

    pass


class EmailNotVerified(AccountError):
    """Login requested before the registration OTP was confirmed."""

    pass


class NotApproved(AccountError):
    """Login requested before an administrator approved the account."""

    pass


class AlreadyVerified(AccountError):
    """Registration OTP requested for an account that is already verified."""

    pass


class RepositoryFailure(AccountError):
    """Storage is unavailable or returned an inconsistent result."""

    pass


class InvalidToken(AccountError):
    """Bearer token signature is invalid or the token has expired."""

    pass


class DeliveryFailure(AccountError):
    """
    Notifier could not deliver a message.

    Raised after the state transition has been committed; the transition
    is never rolled back because of it.
    """

    pass
