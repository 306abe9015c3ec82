"""
API routes.

Defines the REST endpoints of the account lifecycle API. Each route is a
thin adapter: it calls one AuthService operation and maps domain
exceptions to HTTP status codes.

Routes are plain functions, so FastAPI runs them in its worker
threadpool; blocking storage and SMTP calls never stall the event loop.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from otpgate.api.dependencies import get_auth_service
from otpgate.api.models import (
    AccountView,
    EmailRequest,
    ErrorResponse,
    LoginResponse,
    LogoutResponse,
    MessageResponse,
    OtpRequest,
    RegisterRequest,
    UsersResponse,
)
from otpgate.domain.auth import AuthService
from otpgate.domain.exceptions import (
    AlreadyVerified,
    DeliveryFailure,
    DuplicateEmail,
    EmailNotVerified,
    InvalidOtp,
    NotApproved,
    NotFound,
    RepositoryFailure,
    ValidationError,
)

router = APIRouter(tags=["accounts"])


def _error(status_code: int, detail: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=detail)


@router.post(
    "/register",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Email already registered or invalid input"},
        500: {"model": ErrorResponse, "description": "Storage or email delivery failure"},
    },
    summary="Register a new user",
    description="Create an account and send a registration OTP to its email.",
)
def register(
    request_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    try:
        service.register(request_data.to_domain())
    except DuplicateEmail:
        raise _error(status.HTTP_400_BAD_REQUEST, "Email already registered") from None
    except ValidationError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, str(e)) from None
    except RepositoryFailure:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Registration failed") from None
    except DeliveryFailure:
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Registered, but the OTP email could not be sent",
        ) from None
    return MessageResponse(message="Registered successfully. OTP sent to email.")


@router.post(
    "/verify-otp",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid OTP"}},
    summary="Verify registration OTP",
)
def verify_otp(
    request_data: OtpRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Unknown email and wrong code share one response to avoid account enumeration."""
    try:
        service.verify_registration(request_data.email, request_data.otp)
    except (NotFound, InvalidOtp):
        raise _error(status.HTTP_400_BAD_REQUEST, "Invalid OTP") from None
    except RepositoryFailure:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Verification failed") from None
    return MessageResponse(message="Email verified successfully.")


@router.post(
    "/login",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "User not found"},
        403: {"model": ErrorResponse, "description": "Email not verified or not approved"},
        500: {"model": ErrorResponse, "description": "Storage or email delivery failure"},
    },
    summary="Request a login OTP",
)
def login(
    request_data: EmailRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    try:
        service.request_login(request_data.email)
    except NotFound:
        raise _error(status.HTTP_400_BAD_REQUEST, "User not found") from None
    except EmailNotVerified:
        raise _error(status.HTTP_403_FORBIDDEN, "Email not verified") from None
    except NotApproved:
        raise _error(status.HTTP_403_FORBIDDEN, "Not approved by admin") from None
    except RepositoryFailure:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Login failed") from None
    except DeliveryFailure:
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send login OTP email"
        ) from None
    return MessageResponse(message="OTP sent for login.")


@router.post(
    "/verify-login",
    response_model=LoginResponse,
    response_model_exclude_unset=True,
    responses={400: {"model": ErrorResponse, "description": "Invalid OTP"}},
    summary="Exchange a login OTP for a bearer token",
)
def verify_login(
    request_data: OtpRequest,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        result = service.verify_login(request_data.email, request_data.otp)
    except (NotFound, InvalidOtp):
        raise _error(status.HTTP_400_BAD_REQUEST, "Invalid OTP") from None
    except RepositoryFailure:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Login failed") from None
    response = LoginResponse(
        id=result.id,
        name=result.name,
        email=result.email,
        user_type=result.user_type,
        token=result.token,
    )
    if result.warning:
        response.warning = result.warning
    return response


@router.post(
    "/logout",
    response_model=LogoutResponse,
    response_model_exclude_unset=True,
    responses={400: {"model": ErrorResponse, "description": "User not found"}},
    summary="Record a logout",
    description="Append a logout entry to the audit trail. Issued tokens stay valid until they expire.",
)
def logout(
    request_data: EmailRequest,
    service: AuthService = Depends(get_auth_service),
) -> LogoutResponse:
    try:
        result = service.logout(request_data.email)
    except NotFound:
        raise _error(status.HTTP_400_BAD_REQUEST, "User not found") from None
    except RepositoryFailure:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Logout failed") from None
    response = LogoutResponse(message="Logged out successfully.")
    if result.warning:
        response.warning = result.warning
    return response


@router.post(
    "/resend-otp",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Email missing or already verified"},
        404: {"model": ErrorResponse, "description": "User not found"},
        500: {"model": ErrorResponse, "description": "OTP update or email delivery failure"},
    },
    summary="Resend the registration OTP",
)
def resend_otp(
    request_data: EmailRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    try:
        service.resend_registration_otp(request_data.email)
    except NotFound:
        raise _error(status.HTTP_404_NOT_FOUND, "User with this email not found") from None
    except AlreadyVerified:
        raise _error(status.HTTP_400_BAD_REQUEST, "Email already verified") from None
    except RepositoryFailure:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update OTP") from None
    except DeliveryFailure:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send OTP email") from None
    return MessageResponse(message="OTP resent successfully")


@router.get(
    "/users",
    response_model=UsersResponse,
    responses={500: {"model": ErrorResponse, "description": "Storage failure"}},
    summary="List all accounts",
)
def list_users(service: AuthService = Depends(get_auth_service)) -> UsersResponse:
    try:
        accounts = service.list_accounts()
    except RepositoryFailure:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to list users") from None
    return UsersResponse(users=[AccountView.model_validate(account) for account in accounts])
