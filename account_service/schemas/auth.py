"""Pydantic schemas for account endpoints.

Validators raise ``ValueError`` with the exact message returned to the client.
Fields default to ``""`` and are validated anyway, so a missing field reports
the same message as an invalid one.
"""

from email_validator import validate_email
from pydantic import BaseModel, ConfigDict, field_validator

from account_service.services.users import normalize_email

MIN_NAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 4


def _check_email(value: str, message: str) -> str:
    try:
        validate_email(value, check_deliverability=False)
        return normalize_email(value)
    except ValueError as exc:
        raise ValueError(message) from exc


def _check_password(value: str, message: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(message)
    return value


class _Request(BaseModel):
    model_config = ConfigDict(validate_default=True)


class RegisterRequest(_Request):
    name: str = ""
    email: str = ""
    password: str = ""

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        if len(v) < MIN_NAME_LENGTH:
            raise ValueError("Name is not valid")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _check_email(v, "Email is not valid")

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _check_password(v, "Password must be at least 4 characters long")


class LoginRequest(_Request):
    email: str = ""
    password: str = ""

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _check_email(v, "Email is not valid")

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _check_password(v, "Password must be at least 4 characters long")


class ForgotPasswordRequest(_Request):
    email: str = ""

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _check_email(v, "Please enter a valid email address.")


class ResetPasswordRequest(_Request):
    password: str = ""

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _check_password(v, "Password must be at least 4 characters long.")


class MessageResponse(BaseModel):
    success: bool
    message: str


class LoginResponse(MessageResponse):
    name: str
    token: str


class ForgotPasswordResponse(MessageResponse):
    debug: bool | None = None
    token: str | None = None
