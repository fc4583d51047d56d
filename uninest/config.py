# Environment-driven settings shared across modules.
# Values are read at import time; tests set the environment before importing the app.
import os
from typing import Optional


# Basic truthy parser for env flags (1, true, yes, on)
def _truthy(val: Optional[str]) -> bool:
    if val is None:
        return False
    return val.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _to_int(val: Optional[str], default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


ENVIRONMENT: str = os.getenv("UNINEST_ENV", "development").strip().lower()


def is_production() -> bool:
    return ENVIRONMENT == "production"


# DATABASE_URL defaults to a local SQLite file; override for staging/production.
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./data.db")

# Session token settings
JWT_ALG: str = "HS256"
JWT_TTL_SECONDS: int = 60 * 60 * 24 * 7  # 7 days
AUTH_COOKIE_NAME: str = "auth-token"
_DEV_JWT_SECRET = "uninest-dev-secret"


def jwt_secret() -> str:
    """
    Signing secret for session tokens.

    Production refuses to run without UNINEST_JWT_SECRET; other environments
    fall back to a development-only secret.
    """
    secret = os.getenv("UNINEST_JWT_SECRET", "").strip()
    if secret:
        return secret
    if is_production():
        raise RuntimeError("UNINEST_JWT_SECRET must be set when UNINEST_ENV=production")
    return _DEV_JWT_SECRET


def using_dev_jwt_secret() -> bool:
    return jwt_secret() == _DEV_JWT_SECRET


# Password policy for registration.
# Min length defaults to the API's historical 6; complexity (upper/lower/digit) is opt-in.
PASSWORD_MIN_LENGTH: int = _to_int(os.getenv("PASSWORD_MIN_LENGTH"), 6)
PASSWORD_REQUIRE_COMPLEXITY: bool = _truthy(os.getenv("PASSWORD_REQUIRE_COMPLEXITY"))

# bcrypt cost factor; tests lower it to keep the suite fast
BCRYPT_ROUNDS: int = _to_int(os.getenv("BCRYPT_ROUNDS"), 12)

DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100


# Parse CORS origins from a comma-separated env var.
# Note: '*' cannot be used with allow_credentials=True; we fall back to explicit localhost origins for dev.
def cors_origins(env_value: Optional[str] = None) -> list[str]:
    default_dev_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    if env_value is None:
        env_value = os.getenv("CORS_ORIGINS")
    if not env_value:
        return default_dev_origins

    origins = [o.strip() for o in env_value.split(",") if o.strip()]
    if "*" in origins:
        return default_dev_origins

    return origins
