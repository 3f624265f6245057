"""Configuration settings for the account service."""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded once from environment variables."""

    # Database
    MONGODB_URI: str = ""
    MONGODB_DATABASE: str = "accounts"

    # Tokens and sessions
    SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    # Outbound mail
    SMTP_URI: str = ""
    SMTP_SENDER: str = ""

    # Application
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            MONGODB_URI=os.getenv("MONGODB_URI", ""),
            MONGODB_DATABASE=os.getenv("MONGODB_DATABASE", "accounts"),
            SECRET=os.getenv("SECRET", ""),
            JWT_ALGORITHM=os.getenv("JWT_ALGORITHM", "HS256"),
            SMTP_URI=os.getenv("SMTP_URI", ""),
            SMTP_SENDER=os.getenv("SMTP_SENDER", ""),
            APP_ENV=os.getenv("APP_ENV", "development"),
            DEBUG=os.getenv("DEBUG", "false").lower() == "true",
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
            HOST=os.getenv("HOST", "0.0.0.0"),
            PORT=int(os.getenv("PORT", "3000")),
        )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    def validate(self) -> list[str]:
        """Validate settings and return list of problems."""
        errors = []
        if not self.MONGODB_URI:
            errors.append("MONGODB_URI is not set")
        if not self.SECRET:
            errors.append("SECRET is not set")
        if self.is_production:
            if not self.SMTP_URI:
                errors.append("SMTP_URI is not set (required in production)")
            if not self.SMTP_SENDER:
                errors.append("SMTP_SENDER is not set (required in production)")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
