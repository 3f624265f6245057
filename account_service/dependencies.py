"""Service factories and authentication dependencies for FastAPI routes."""

import logging
from typing import Any

from fastapi import Depends, HTTPException, Request
from pymongo.database import Database

from account_service.config import Settings, get_settings
from account_service.database import get_db
from account_service.services.auth import AccountService
from account_service.services.jwt import InvalidTokenError, TokenService
from account_service.services.mail import MailService
from account_service.services.users import UserStore

logger = logging.getLogger("account_service")

ACCESS_TOKEN_HEADER = "x-access-token"
BEARER_PREFIX = "Bearer "


def get_user_store(db: Database = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)


def get_mail_service(settings: Settings = Depends(get_settings)) -> MailService:
    return MailService(settings)


def get_account_service(
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
    mail: MailService = Depends(get_mail_service),
) -> AccountService:
    return AccountService(store, tokens, mail)


async def _read_body(request: Request) -> dict[str, Any]:
    """Parse a JSON or form body into a dict. Anything else counts as empty."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return dict(form)
    return {}


def extract_token(body: dict[str, Any], request: Request) -> str | None:
    """Find a bearer token: body field, query param, x-access-token, then Authorization.

    The first non-empty string wins. Returns None only when no location holds
    one; a bare ``Bearer `` prefix yields ``""``, which then fails verification.
    """
    candidates = (
        body.get("token"),
        request.query_params.get("token"),
        request.headers.get(ACCESS_TOKEN_HEADER),
        request.headers.get("Authorization"),
    )
    token = next((c for c in candidates if isinstance(c, str) and c), None)
    if token is None:
        return None
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX) :]
    return token


async def get_token_payload(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> dict[str, Any]:
    """Verify the request's bearer token. 403 when missing, 401 when invalid."""
    body = await _read_body(request)
    token = extract_token(body, request)

    if token is None:
        raise HTTPException(status_code=403, detail={"success": False, "message": "Token not found."})

    try:
        return tokens.verify(token)
    except InvalidTokenError:
        logger.info("Rejected token on %s", request.url.path)
        raise HTTPException(
            status_code=401,
            detail={"success": False, "message": "Failed to authenticate token."},
        ) from None
