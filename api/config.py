"""
Environment-aware configuration.
Token secrets have no built-in fallback: they must come from the environment
(or a .env file) and create_app() refuses to start without them.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _seconds(name: str, default: int) -> timedelta:
    return timedelta(seconds=int(os.getenv(name, str(default))))


class BaseConfig:
    DEBUG = False
    TESTING = False
    # Comma-separated; credentials are allowed, so a wildcard is refused at startup
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:1866").split(",") if o.strip()]
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Required, no defaults; validate_config() also rejects equal values
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET")
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "session-issuer")
    ACCESS_TOKEN_TTL = _seconds("ACCESS_TOKEN_TTL", 15 * 60)
    REFRESH_TOKEN_TTL = _seconds("REFRESH_TOKEN_TTL", 7 * 24 * 3600)

    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refreshToken")
    REFRESH_COOKIE_SECURE = os.getenv("REFRESH_COOKIE_SECURE", "false").lower() in ("1", "true", "yes")
    REFRESH_COOKIE_SAMESITE = os.getenv("REFRESH_COOKIE_SAMESITE", "Strict")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    # Let the registered handlers render 500s instead of re-raising in the client
    PROPAGATE_EXCEPTIONS = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    REFRESH_COOKIE_SECURE = os.getenv("REFRESH_COOKIE_SECURE", "true").lower() in ("1", "true", "yes")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def validate_config(config) -> None:
    """Fail fast on absent or shared secrets, bad TTLs or a wildcard CORS origin."""
    access = config.get("ACCESS_TOKEN_SECRET")
    refresh = config.get("REFRESH_TOKEN_SECRET")
    missing = [k for k, v in (("ACCESS_TOKEN_SECRET", access), ("REFRESH_TOKEN_SECRET", refresh)) if not v]
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")
    if access == refresh:
        raise RuntimeError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
    for key in ("ACCESS_TOKEN_TTL", "REFRESH_TOKEN_TTL"):
        if config[key].total_seconds() <= 0:
            raise RuntimeError(f"{key} must be positive")
    if "*" in config.get("CORS_ORIGINS", []):
        raise RuntimeError("CORS_ORIGINS may not contain '*' while credentials are allowed")
