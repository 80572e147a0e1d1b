from __future__ import annotations

from fastapi import Depends, Header, Request, status
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from ..core.errors import ApiError
from ..core.security import decode_token
from ..crud.users import get_user_by_id
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..models.user import User


def bearer_token(authorization: str | None) -> str | None:
    scheme, credentials = get_authorization_scheme_param(authorization or "")
    if scheme.lower() != "bearer" or not credentials:
        return None
    return credentials


def set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


def require_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> User:
    token = bearer_token(authorization)
    if not token:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "No token provided")
    try:
        payload = decode_token(token)
    except ValueError as exc:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid token") from exc
    user = get_user_by_id(db, payload.sub)
    if user is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "User not found")
    set_principal(request, f"user:{user.id}")
    return user
