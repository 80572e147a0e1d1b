"""Account endpoints: register, login, token verification and password reset."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import ApiError
from ..core.security import decode_token, generate_password, hash_password, issue_token, verify_password
from ..crud.users import create_user, get_user_by_email, get_user_by_id, update_user
from ..db.session import get_db
from ..deps.auth import set_principal, bearer_token
from ..schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    UserOut,
    VerifyResponse,
)
from ..services.mailer import EmailDeliveryError, EmailService, get_email_service

logger = logging.getLogger("paycheck.auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=MessageResponse)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
):
    if not payload.name or not payload.email or not payload.password:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Name, email, and password are required")
    if get_user_by_email(db, payload.email):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "User already exists with this email")

    try:
        user = create_user(
            db,
            {"name": payload.name, "email": payload.email, "password": payload.password, "is_verified": False},
        )
    except IntegrityError as exc:
        db.rollback()
        raise ApiError(status.HTTP_400_BAD_REQUEST, "User already exists with this email") from exc
    except ValueError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    logger.info("auth.registered", extra={"extra_data": {"user_id": user.id}})

    try:
        mailer.send_welcome_email(user.email, user.name)
    except EmailDeliveryError:
        # registration stands without the welcome email
        logger.warning("auth.welcome_email_failed", exc_info=True, extra={"extra_data": {"user_id": user.id}})

    return MessageResponse(
        success=True,
        message="Registration successful. You can now log in with your credentials.",
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email and password are required")
    user = get_user_by_email(db, payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")
    set_principal(request, f"user:{user.id}")
    token = issue_token(user.id, user.email)
    return LoginResponse(token=token, user=UserOut(**user.to_public()))


@router.get("/verify", response_model=VerifyResponse)
def verify(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
):
    token = bearer_token(authorization)
    if not token:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "No token provided")
    try:
        claims = decode_token(token)
    except ValueError as exc:
        logger.info("auth.token_rejected", extra={"extra_data": {"reason": str(exc)}})
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid token") from exc
    user = get_user_by_id(db, claims.sub)
    if user is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "User not found")
    set_principal(request, f"user:{user.id}")
    return VerifyResponse(user=UserOut(**user.to_public()))


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
):
    if not payload.email:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email is required")
    user = get_user_by_email(db, payload.email)
    if user is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "No account found with this email address")

    new_password = generate_password()
    update_user(db, user, {"password_hash": hash_password(new_password)}, commit=False)
    try:
        mailer.send_password_reset_email(user.email, user.name, new_password)
    except EmailDeliveryError as exc:
        # keep the old password usable when the new one never reached the user
        db.rollback()
        logger.error("auth.reset_email_failed", exc_info=True, extra={"extra_data": {"user_id": user.id}})
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send email. Please try again.") from exc
    db.commit()
    logger.info("auth.password_reset", extra={"extra_data": {"user_id": user.id}})

    return MessageResponse(success=True, message="Your new password has been sent to your email address.")
