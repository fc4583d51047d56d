from __future__ import annotations

import re
import time
from typing import Optional

import jwt
from fastapi import Request, Response
from passlib.context import CryptContext

from . import config, models
from .errors import AuthError, ValidationError

# bcrypt with a configurable cost factor (12 unless BCRYPT_ROUNDS says otherwise)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)


# ----------------
# Passwords
# ----------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def burn_password_check() -> None:
    # Spend the same hashing time as a real verify so unknown emails are not detectable by latency
    pwd_context.dummy_verify()


def check_password_policy(password: str) -> None:
    if len(password) < config.PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {config.PASSWORD_MIN_LENGTH} characters")
    if config.PASSWORD_REQUIRE_COMPLEXITY:
        if not re.search(r"[A-Z]", password):
            raise ValidationError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", password):
            raise ValidationError("Password must contain at least one lowercase letter")
        if not re.search(r"[0-9]", password):
            raise ValidationError("Password must contain at least one number")


# ----------------
# Session tokens
# ----------------
def create_access_token(*, user: models.User) -> str:
    now = int(time.time())
    payload = {
        "userId": user.id,
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + config.JWT_TTL_SECONDS,
    }
    return jwt.encode(payload, config.jwt_secret(), algorithm=config.JWT_ALG)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.jwt_secret(), algorithms=[config.JWT_ALG])
    except jwt.InvalidTokenError as exc:
        # Expired and tampered tokens look the same to the client
        raise AuthError("Invalid token") from exc


def token_from_request(request: Request) -> Optional[str]:
    """Session token from the auth cookie, falling back to an `Authorization: Bearer` header."""
    token = request.cookies.get(config.AUTH_COOKIE_NAME)
    if token:
        return token
    authorization = request.headers.get("Authorization")
    if authorization:
        parts = authorization.split(" ", 1)
        if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1].strip():
            return parts[1].strip()
    return None


# ----------------
# Cookies
# ----------------
def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=config.AUTH_COOKIE_NAME,
        value=token,
        max_age=config.JWT_TTL_SECONDS,
        path="/",
        httponly=True,
        secure=config.is_production(),
        samesite="lax",
    )


def clear_auth_cookie(response: Response) -> None:
    response.set_cookie(
        key=config.AUTH_COOKIE_NAME,
        value="",
        max_age=0,
        path="/",
        httponly=True,
        secure=config.is_production(),
        samesite="lax",
    )
