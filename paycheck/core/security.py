from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from .config import settings

ALGORITHM = "HS256"
AUDIENCE = "pay-check-clients"
ISSUER = "pay-check"
BCRYPT_ROUNDS = 10
PASSWORD_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "!@#$%^&*"
PASSWORD_LENGTH = 12
_BASE36 = string.digits + string.ascii_lowercase


class TokenPayload(BaseModel):
    sub: str
    email: str
    exp: datetime
    iat: datetime
    aud: str
    iss: str


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed hash in storage
        return False


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Random password mailed to users who forgot theirs."""

    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def generate_user_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"user_{int(time.time() * 1000)}_{suffix}"


def issue_token(user_id: str, email: str, ttl: timedelta | None = None) -> str:
    now = _now()
    lifetime = ttl if ttl is not None else timedelta(days=settings.JWT_TTL_DAYS)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
        "aud": AUDIENCE,
        "iss": ISSUER,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    try:
        decoded = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=AUDIENCE,
            issuer=ISSUER,
        )
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    try:
        return TokenPayload.model_validate(decoded)
    except ValidationError as exc:
        raise ValueError("Invalid token payload") from exc
