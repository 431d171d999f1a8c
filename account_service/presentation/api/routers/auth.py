"""API router for registration, verification, login and password reset."""

from fastapi import APIRouter, Depends

from ....application.services.account_service import AccountLifecycleService
from ....core.dependencies import get_account_service
from ...api.schemas.auth import (
    AccountResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyRequest,
)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

FORGOT_PASSWORD_PATH = f"{router.prefix}/forgot-password"
FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a password reset link has been sent."

# Plain def handlers: they run in the threadpool since bcrypt, SQLite and SMTP block.


@router.post("/register", response_model=AccountResponse)
def register(
    payload: RegisterRequest,
    account_service: AccountLifecycleService = Depends(get_account_service),
) -> AccountResponse:
    """Create an account and send its verification email."""
    result = account_service.register(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        password=payload.password,
        account_type=payload.account_type,
        phone=payload.phone,
        address=payload.address,
        country=payload.country,
        zip_code=payload.zip_code,
    )
    return AccountResponse(
        message="Account created. Please check your email to verify your account.",
        user=result.account.to_public_dict(),
    )


@router.post("/verify", response_model=MessageResponse)
def verify(
    payload: VerifyRequest,
    account_service: AccountLifecycleService = Depends(get_account_service),
) -> MessageResponse:
    account_service.verify_account(payload.token)
    return MessageResponse(message="Email verified successfully")


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    account_service: AccountLifecycleService = Depends(get_account_service),
) -> LoginResponse:
    result = account_service.login(payload.email, payload.password)
    return LoginResponse(
        message="Login successful!",
        token=result.session_token,
        user=result.account.to_public_dict(),
    )


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    account_service: AccountLifecycleService = Depends(get_account_service),
) -> MessageResponse:
    """Always answers the same way, whether or not the email is registered."""
    account_service.forgot_password(payload.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPasswordRequest,
    account_service: AccountLifecycleService = Depends(get_account_service),
) -> MessageResponse:
    account_service.reset_password(payload.token, payload.new_password)
    return MessageResponse(message="Password has been reset")
