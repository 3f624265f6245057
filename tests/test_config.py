"""Tests for configuration loading and validation."""

from unittest.mock import patch

import pytest

from account_service.config import Settings


class TestSettings:
    """Tests for loading and validating settings."""

    def test_from_env(self, monkeypatch):
        """Settings are read from the environment."""
        monkeypatch.setenv("MONGODB_URI", "mongodb://db.internal:27017")
        monkeypatch.setenv("SECRET", "s3cret")
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("DEBUG", "true")

        settings = Settings.from_env()
        assert settings.MONGODB_URI == "mongodb://db.internal:27017"
        assert settings.SECRET == "s3cret"
        assert settings.is_production
        assert settings.PORT == 8080
        assert settings.DEBUG is True

    def test_immutable(self):
        """Settings cannot be changed after construction."""
        settings = Settings(SECRET="s3cret")
        with pytest.raises(AttributeError):
            settings.SECRET = "changed"  # type: ignore[misc]

    def test_valid_development(self):
        """A database URI and a secret are enough outside production."""
        assert Settings(MONGODB_URI="mongodb://localhost", SECRET="s3cret").validate() == []

    def test_missing_required(self):
        """Missing database URI and secret are both reported."""
        problems = Settings().validate()
        assert "MONGODB_URI is not set" in problems
        assert "SECRET is not set" in problems

    def test_production_requires_mail(self):
        """Production also needs the SMTP URI and sender."""
        problems = Settings(MONGODB_URI="mongodb://localhost", SECRET="s3cret", APP_ENV="production").validate()
        assert len(problems) == 2
        assert all("required in production" in p for p in problems)


class TestStartup:
    """Tests for application startup."""

    def test_refuses_to_start_without_required_settings(self):
        """Startup exits with status 1 when configuration is incomplete."""
        import asyncio

        from main import app, lifespan

        async def start():
            async with lifespan(app):
                pass

        with patch("main.get_settings", return_value=Settings()), pytest.raises(SystemExit) as exc:
            asyncio.run(start())
        assert exc.value.code == 1
