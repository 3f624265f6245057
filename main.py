"""Account Service - registration, login and password reset."""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from account_service.config import get_settings
from account_service.database import get_database
from account_service.routers import auth_router
from account_service.services.jwt import TokenConfigError
from account_service.services.mail import MailDeliveryError
from account_service.services.users import UserStore

BASE_DIR = Path(__file__).resolve().parent

settings = get_settings()

# Logging
logger = logging.getLogger("account_service")
logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Refuse to start without required configuration, then ensure indexes."""
    current = get_settings()
    problems = current.validate()
    if problems:
        for problem in problems:
            logger.error("Configuration error: %s", problem)
        raise SystemExit(1)

    try:
        UserStore(get_database(current)).ensure_indexes()
    except PyMongoError as e:
        logger.error("MongoDB connection error. Please make sure MongoDB is running. %s", e)

    logger.info("Account service started (%s)", current.APP_ENV)
    yield


app = FastAPI(title="Account Service", version="0.1.0", debug=settings.DEBUG, lifespan=lifespan)


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = {"/api/create", "/api/login", "/api/forgot", "/api/reset/"}

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        if request.method == "POST" and any(path.startswith(p) for p in self.AUDIT_PATHS):
            # Reset tokens travel in the path
            if path.startswith("/api/reset/"):
                path = "/api/reset/***"
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                request.method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuditLogMiddleware)
app.add_middleware(SessionMiddleware, secret_key=settings.SECRET, https_only=settings.is_production)
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Static files
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")

# Templates
templates = Jinja2Templates(directory=BASE_DIR / "templates")

# API routers
app.include_router(auth_router)


# --- Exception handlers ---
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Serialize HTTP errors. Routers pass the full response envelope as ``detail``."""
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)
    if request.url.path.startswith("/api/"):
        return JSONResponse(
            status_code=exc.status_code,
            content={"errors": [{"title": "Request Error", "detail": exc.detail}]},
            headers=exc.headers,
        )
    return HTMLResponse(
        content=f"<h1>{exc.status_code}</h1><p>{exc.detail}</p>",
        status_code=exc.status_code,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report every invalid field as a 400 ``errors`` entry."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        ctx_error = (err.get("ctx") or {}).get("error")
        errors.append(
            {
                "title": "Validation Error",
                "param": ".".join(loc) or "body",
                "detail": str(ctx_error) if ctx_error else err.get("msg", "Invalid value"),
            }
        )
    return JSONResponse(status_code=400, content={"errors": errors})


@app.exception_handler(Exception)
@app.exception_handler(PyMongoError)
@app.exception_handler(TokenConfigError)
@app.exception_handler(MailDeliveryError)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log internal failures; never expose their details."""
    logger.error("Internal error on %s %s: %r", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"errors": [{"title": "Internal Error", "detail": "An unexpected error occurred."}]},
    )


# --- Health check ---
@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "account-service", "version": "0.1.0"}


# --- Web routes ---
@app.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    """Render home page."""
    return templates.TemplateResponse(request, "home.html", {"title": "Home"})


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
