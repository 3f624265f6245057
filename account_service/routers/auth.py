"""Account API endpoints."""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from account_service.config import Settings, get_settings
from account_service.dependencies import get_account_service, get_token_payload
from account_service.schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
)
from account_service.services.auth import AccountService

logger = logging.getLogger("account_service")

router = APIRouter(prefix="/api", tags=["Accounts"])


def error_entry(title: str, detail: str, error_message: str | None = None) -> dict:
    """Build one entry of the ``errors`` envelope."""
    entry = {"title": title, "detail": detail}
    if error_message is not None:
        entry["errorMessage"] = error_message
    return entry


@router.post("/create", response_model=MessageResponse)
def create_account(body: RegisterRequest, service: AccountService = Depends(get_account_service)) -> MessageResponse:
    """Register a new user account."""
    result = service.register(body.name, body.email, body.password)

    if not result.success:
        raise HTTPException(
            status_code=400,
            detail={
                "success": False,
                "message": result.error,
                "errors": [error_entry("Registration Error", result.error)],  # type: ignore[arg-type]
            },
        )

    return MessageResponse(success=True, message="Your account is now active. Congratulations!")


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, service: AccountService = Depends(get_account_service)) -> LoginResponse:
    """Authenticate and receive a bearer token."""
    result = service.login(body.email, body.password)

    if not result.success:
        logger.info("Login failed for %s: %s", body.email, result.error)
        raise HTTPException(
            status_code=401,
            detail={
                "errors": [
                    error_entry("Invalid Credentials", "Check email and password combination", result.error),
                ]
            },
        )

    return LoginResponse(
        success=True,
        message=f"Welcome! {result.name}",
        name=result.name,  # type: ignore[arg-type]
        token=result.token,  # type: ignore[arg-type]
    )


@router.post("/forgot", response_model=ForgotPasswordResponse, response_model_exclude_none=True)
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> ForgotPasswordResponse:
    """Request a password reset link by email."""
    host = request.headers.get("host") or request.url.netloc
    result = service.forgot_password(body.email, host)

    if not result.success:
        raise HTTPException(
            status_code=403,
            detail={"errors": [error_entry("Password Reset Error", result.error)]},  # type: ignore[arg-type]
        )

    message = "Instructions sent to registered email."
    if settings.is_production:
        return ForgotPasswordResponse(success=True, message=message)
    return ForgotPasswordResponse(success=True, message=message, debug=True, token=result.token)


@router.post("/reset/{token}", response_model=MessageResponse)
def reset_password(
    token: str,
    body: ResetPasswordRequest,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    """Set a new password using the token from the reset email."""
    result = service.reset_password(token, body.password)

    if not result.success:
        raise HTTPException(
            status_code=403,
            detail={"errors": [error_entry("Password Reset Error", result.error)]},  # type: ignore[arg-type]
        )

    return MessageResponse(success=True, message="Password reset.")


@router.post("/me")
def me(payload: dict = Depends(get_token_payload)) -> dict:
    """Echo the verified token payload."""
    return {"status": True, "message": "Welcome! " + json.dumps(payload), "decoded": payload}

