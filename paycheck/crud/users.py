"""CRUD helpers for user accounts."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.security import generate_user_id, hash_password
from ..models.user import User

UPDATABLE_FIELDS = ("name", "email", "password_hash", "google_id", "is_verified")


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == normalize_email(email))
    return db.execute(stmt).scalars().first()


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def get_user_by_google_id(db: Session, google_id: str) -> User | None:
    return db.execute(select(User).where(User.google_id == google_id)).scalars().first()


def create_user(db: Session, payload: dict) -> User:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    email = normalize_email(payload.get("email") or "")
    if not email:
        raise ValueError("email is required")
    password = payload.get("password")
    password_hash = payload.get("password_hash") or (hash_password(password) if password else None)
    now = _utcnow()
    user = User(
        id=payload.get("id") or generate_user_id(),
        email=email,
        name=name,
        password_hash=password_hash,
        google_id=payload.get("google_id") or None,
        is_verified=bool(payload.get("is_verified", False)),
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, user: User, updates: dict, *, commit: bool = True) -> User:
    for field in UPDATABLE_FIELDS:
        if field in updates:
            setattr(user, field, updates[field])
    user.updated_at = _utcnow()
    if commit:
        db.commit()
        db.refresh(user)
    return user


def set_verified(db: Session, user: User, is_verified: bool = True) -> User:
    return update_user(db, user, {"is_verified": is_verified})
