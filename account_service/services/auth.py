"""Account workflows: registration, login and password reset."""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from account_service.services.jwt import LOGIN_TOKEN_TTL_SECONDS, TokenService
from account_service.services.mail import (
    MailDeliveryError,
    MailService,
    password_changed_message,
    reset_instructions_message,
)
from account_service.services.users import EmailTakenError, UserStore

logger = logging.getLogger("account_service")

RESET_TOKEN_BYTES = 16
RESET_TOKEN_TTL = timedelta(hours=1)


@dataclass
class AuthResult:
    """Result of an account operation."""

    success: bool
    error: str | None = None
    name: str | None = None
    email: str | None = None
    token: str | None = None


@dataclass
class StepResult:
    """Outcome of one pipeline step. ``values`` are merged into the pipeline context."""

    success: bool
    error: str | None = None
    values: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **values: Any) -> "StepResult":
        return cls(success=True, values=values)

    @classmethod
    def fail(cls, error: str) -> "StepResult":
        return cls(success=False, error=error)


Step = Callable[[dict[str, Any]], StepResult]


def run_pipeline(name: str, steps: list[Step], context: dict[str, Any]) -> StepResult:
    """Run ``steps`` in order, stopping at the first one that fails.

    Each step reads what it needs from ``context`` and returns a StepResult.
    A failed result is returned as-is and no later step runs.
    """
    for step in steps:
        result = step(context)
        if not result.success:
            logger.info("%s stopped at %s: %s", name, step.__name__, result.error)
            return result
        context.update(result.values)
    return StepResult.ok(**context)


class AccountService:
    """Orchestrates the credential store, token service and mail per request."""

    def __init__(self, store: UserStore, tokens: TokenService, mail: MailService) -> None:
        self.store = store
        self.tokens = tokens
        self.mail = mail

    def register(self, name: str, email: str, password: str) -> AuthResult:
        """Register a new user. No token is issued; login is a separate step."""
        try:
            user = self.store.create(name, email, password)
        except EmailTakenError:
            return AuthResult(success=False, error="Account with that email address already exists.")
        return AuthResult(success=True, name=user.name, email=user.email)

    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate a user and issue a 7-day token carrying name and email."""
        user = self.store.find_by_email(email)
        if not user:
            return AuthResult(success=False, error="No such user.")

        if not self.store.compare_password(user, password):
            return AuthResult(success=False, error="Invalid password.")

        token = self.tokens.issue({"name": user.name, "email": user.email}, LOGIN_TOKEN_TTL_SECONDS)
        return AuthResult(success=True, name=user.name, email=user.email, token=token)

    # --- forgot password ---

    def _create_random_token(self, ctx: dict[str, Any]) -> StepResult:
        return StepResult.ok(token=secrets.token_hex(RESET_TOKEN_BYTES))

    def _set_random_token(self, ctx: dict[str, Any]) -> StepResult:
        user = self.store.find_by_email(ctx["email"])
        if not user:
            return StepResult.fail("Account with that email address does not exist.")
        self.store.set_reset_token(user, ctx["token"], datetime.utcnow() + RESET_TOKEN_TTL)
        return StepResult.ok(user=user)

    def _send_forgot_password_email(self, ctx: dict[str, Any]) -> StepResult:
        message = reset_instructions_message(ctx["user"].email, self.mail.sender, ctx["host"], ctx["token"])
        try:
            self.mail.send(message)
        except MailDeliveryError:
            return StepResult.fail("Failed to send password reset email.")
        return StepResult.ok()

    def forgot_password(self, email: str, host: str) -> AuthResult:
        """Store a one-hour reset token for ``email`` and mail the reset link."""
        result = run_pipeline(
            "forgot_password",
            [self._create_random_token, self._set_random_token, self._send_forgot_password_email],
            {"email": email, "host": host},
        )
        if not result.success:
            return AuthResult(success=False, error=result.error)
        user = result.values["user"]
        return AuthResult(success=True, name=user.name, email=user.email, token=result.values["token"])

    # --- reset password ---

    def _reset_password(self, ctx: dict[str, Any]) -> StepResult:
        user = self.store.find_by_valid_reset_token(ctx["token"])
        if user:
            user = self.store.clear_reset_and_set_password(user, ctx["password"])
        if not user:
            return StepResult.fail("Password reset token is invalid or has expired.")
        return StepResult.ok(user=user)

    def _send_reset_password_email(self, ctx: dict[str, Any]) -> StepResult:
        if not self.mail.deliver:
            return StepResult.ok()
        try:
            self.mail.send(password_changed_message(ctx["user"].email, self.mail.sender))
        except MailDeliveryError:
            return StepResult.fail("Failed to send password change confirmation.")
        return StepResult.ok()

    def reset_password(self, token: str, password: str) -> AuthResult:
        """Set a new password using a valid reset token. The token is consumed."""
        result = run_pipeline(
            "reset_password",
            [self._reset_password, self._send_reset_password_email],
            {"token": token, "password": password},
        )
        if not result.success:
            return AuthResult(success=False, error=result.error)
        user = result.values["user"]
        return AuthResult(success=True, name=user.name, email=user.email)
