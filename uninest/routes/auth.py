# Authentication endpoints: register, login, session check and logout.
# The session token travels in the httpOnly `auth-token` cookie and is also returned in the body.
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas, security
from ..db import get_db
from ..errors import AuthError, ConflictError, NotFoundError, ValidationError, handler_boundary
from ..rate_limit import rate_limit

router = APIRouter()
logger = logging.getLogger("uninest.auth")

# Same body for unknown email and wrong password so accounts cannot be enumerated
INVALID_CREDENTIALS = "Invalid email or password"


def _start_session(response: Response, user: models.User) -> str:
    token = security.create_access_token(user=user)
    security.set_auth_cookie(response, token)
    return token


@router.post(
    "/auth/register",
    response_model=schemas.AuthResponse,
    dependencies=[Depends(rate_limit("register"))],
)
def register(
    payload: schemas.RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> schemas.AuthResponse:
    if not payload.name or not payload.email or not payload.password or not payload.role:
        raise ValidationError("All fields are required")
    security.check_password_policy(payload.password)
    if payload.role not in schemas.ROLES:
        raise ValidationError("Invalid role")

    email = payload.email
    with handler_boundary("Registration failed", db):
        if db.query(models.User.id).filter(models.User.email == email).first():
            raise ConflictError("Email already registered")

        user = models.User(
            email=email,
            password_hash=security.hash_password(payload.password),
            name=payload.name,
            phone=payload.phone,
            role=payload.role,
        )
        # The profile is inserted in the same transaction as the user
        if payload.role == "student":
            user.student_profile = models.StudentProfile()
        else:
            user.landlord_profile = models.LandlordProfile(
                is_verified=False,
                total_properties=0,
                response_rate=0,
                response_time=60,
            )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email
            raise ConflictError("Email already registered") from exc
        db.refresh(user)

    logger.info("auth.register", extra={"user_id": user.id, "role": user.role})
    token = _start_session(response, user)
    return schemas.AuthResponse(
        message="Registration successful",
        user=schemas.UserRead.model_validate(user),
        token=token,
    )


@router.post(
    "/auth/login",
    response_model=schemas.AuthResponse,
    dependencies=[Depends(rate_limit("login"))],
)
def login(
    payload: schemas.LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> schemas.AuthResponse:
    if not payload.email or not payload.password:
        raise ValidationError("Email and password are required")

    with handler_boundary("Login failed", db):
        user = db.query(models.User).filter(models.User.email == payload.email).first()
        if user is None:
            security.burn_password_check()
            raise AuthError(INVALID_CREDENTIALS)
        if not security.verify_password(payload.password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)

    token = _start_session(response, user)
    return schemas.AuthResponse(
        message="Login successful",
        user=schemas.UserRead.model_validate(user),
        token=token,
    )


@router.get("/auth/me", response_model=schemas.SessionResponse)
def me(request: Request, db: Session = Depends(get_db)) -> schemas.SessionResponse:
    token = security.token_from_request(request)
    if not token:
        raise AuthError("Not authenticated")
    claims = security.decode_token(token)
    user_id = claims.get("userId")
    if not user_id:
        raise AuthError("Invalid token")

    with handler_boundary("Failed to fetch session", db):
        user = db.get(models.User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return schemas.SessionResponse(user=schemas.UserRead.model_validate(user))


@router.delete("/auth/me", response_model=schemas.MessageResponse)
def logout(response: Response) -> schemas.MessageResponse:
    security.clear_auth_cookie(response)
    return schemas.MessageResponse(message="Logged out successfully")
