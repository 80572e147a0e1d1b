"""Application wiring for the Pay Check backend.

This module brings together configuration, database setup, middleware, API
routers and error handling. Importing it builds the ``app`` object that
``paycheck.main`` serves and that the tests drive through ``TestClient``.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    ApiError,
    api_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .db.migrate import run_migrations
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware

# Importing the SQLAlchemy models registers them with the metadata so that
# ``Base.metadata.create_all`` knows about every table.
from .models import canvas as _canvas  # noqa: F401
from .models import user as _user  # noqa: F401

# ---------- App init ----------
app = FastAPI(title=settings.APP_NAME)

# ---------- DB init/migrations ----------
# ``create_all`` covers brand-new databases; ``run_migrations`` adds columns
# that older databases are missing.
Base.metadata.create_all(bind=engine)
run_migrations(engine)

# ---------- Middleware ----------
# Starlette runs the last-added middleware first, so request ids are assigned
# before CORS and header handling see the request.
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

# ---------- Routers ----------
from .routers import health as health_router  # type: ignore

app.include_router(health_router.router)

from .routers import api_auth as api_auth_router  # type: ignore

app.include_router(api_auth_router.router, prefix="")

from .routers import api_canvases as api_canvases_router  # type: ignore

app.include_router(api_canvases_router.router, prefix="")

from .routers import api_preferences as api_preferences_router  # type: ignore

app.include_router(api_preferences_router.router, prefix="")

# ---------- Exception handling ----------
# Every error leaves the API as ``{"success": false, "message": ...}`` so the
# client can show ``message`` directly.
app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["app"]
