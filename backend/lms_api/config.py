"""
Application configuration from environment variables.
Loads .env from the backend directory so JWT settings are found regardless of cwd.
"""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from lms_api.errors import ConfigurationError

# Placeholder shipped for local development; rejected when ENV=production.
DEV_SECRET_KEY = "change-me-in-production"

# .env next to backend/ (parent of lms_api/): load explicitly so keys are set even when run from repo root
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)
else:
    # Fallback: try backend/.env relative to cwd (e.g. when running from repo root)
    import os
    _cwd_env = Path(os.getcwd()) / "backend" / ".env"
    if _cwd_env.exists():
        from dotenv import load_dotenv
        load_dotenv(_cwd_env, override=False)


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: sqlite for testing without Docker, postgresql for production
    database_url: str = "sqlite:///./lms_dev.db"

    # Environment: set ENV=production in production; used to reject the dev SECRET_KEY.
    env: str = ""

    # JWT. All four are required; empty values fail at startup and on first token use.
    secret_key: str = ""
    jwt_issuer: str = ""
    jwt_audience: str = ""
    jwt_expires_minutes: int = 15

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:3000"


settings = Settings()


def require_jwt_settings() -> Settings:
    """Return settings if every JWT key is present; raise ConfigurationError naming the missing ones."""
    missing = [
        name.upper()
        for name in ("secret_key", "jwt_issuer", "jwt_audience")
        if not (getattr(settings, name, "") or "").strip()
    ]
    if not settings.jwt_expires_minutes or settings.jwt_expires_minutes <= 0:
        missing.append("JWT_EXPIRES_MINUTES")
    if missing:
        raise ConfigurationError(f"Missing JWT configuration: {', '.join(missing)}")
    if (settings.env or "").strip().lower() == "production" and settings.secret_key.strip() == DEV_SECRET_KEY:
        raise ConfigurationError("SECRET_KEY must be set in production. Set SECRET_KEY in env or .env.")
    return settings
