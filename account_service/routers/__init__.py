"""API routers."""

from account_service.routers.auth import router as auth_router

__all__ = ["auth_router"]
