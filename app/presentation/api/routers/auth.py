"""API router for login, registration, email verification and password reset."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.application.services.auth_service import AuthService
from app.core.dependencies import get_auth_service
from app.presentation.api import responses
from app.presentation.api.schemas.auth import (
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    VerifyEmailRequest,
)
from app.presentation.api.schemas.user_schemas import MessageResponse, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])

# Identical whether or not the email belongs to an account.
RESEND_ACCEPTED = MessageResponse(message="If the email exists, a verification email has been sent.")
RESET_ACCEPTED = MessageResponse(message="If the email exists, a password reset email has been sent.")


@router.post("/register")
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Register a new account and send the verification email."""
    user = await auth_service.register(request.to_input())
    return responses.created(UserResponse.from_domain(user))


@router.post("/login")
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    token = await auth_service.login(request.email, request.password)
    return responses.success(
        TokenResponse(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
        )
    )


@router.post("/verify-email")
async def verify_email(
    request: VerifyEmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    user = await auth_service.verify_email(request.token)
    return responses.success(UserResponse.from_domain(user))


@router.post("/resend-verification")
async def resend_verification(
    request: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    await auth_service.resend_verification(request.email)
    return responses.success(RESEND_ACCEPTED)


@router.post("/forgot-password")
async def forgot_password(
    request: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    await auth_service.request_password_reset(request.email)
    return responses.success(RESET_ACCEPTED)


@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    await auth_service.reset_password(request.token, request.new_password)
    return responses.success(MessageResponse(message="Password has been reset"))
