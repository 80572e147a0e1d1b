"""CRUD helpers for canvases, their panels, counters and user preferences."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import desc, select
from sqlalchemy.orm import Session, selectinload

from ..models.canvas import Canvas, Counter, Panel, Preferences


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _dump(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def list_canvases(db: Session, user_id: str, limit: int = 200, offset: int = 0):
    stmt = (
        select(Canvas)
        .options(selectinload(Canvas.panels), selectinload(Canvas.counter))
        .where(Canvas.user_id == user_id)
        .order_by(desc(Canvas.created_at), desc(Canvas.id))
        .limit(limit)
        .offset(offset)
    )
    return db.execute(stmt).scalars().all()


def get_canvas(db: Session, canvas_id: int, user_id: str | None = None) -> Canvas | None:
    stmt = (
        select(Canvas)
        .options(selectinload(Canvas.panels), selectinload(Canvas.counter))
        .where(Canvas.id == canvas_id)
    )
    if user_id is not None:
        stmt = stmt.where(Canvas.user_id == user_id)
    return db.execute(stmt).scalars().first()


def _set_panels(canvas: Canvas, panels: Iterable[dict[str, Any]], now: str) -> None:
    canvas.panels = [Panel(config=_dump(panel), created_at=now) for panel in panels]


def _set_counter(canvas: Canvas, value: float) -> None:
    if canvas.counter is None:
        canvas.counter = Counter(value=float(value))
    else:
        canvas.counter.value = float(value)


def create_canvas(db: Session, user_id: str, payload: dict) -> Canvas:
    title = (payload.get("name") or payload.get("title") or "").strip()
    if not title:
        raise ValueError("name is required")
    now = _utcnow()
    canvas = Canvas(
        user_id=user_id,
        title=title,
        data=_dump({"lastSnapshotAt": payload.get("last_snapshot_at")}),
        created_at=now,
        updated_at=now,
    )
    _set_panels(canvas, payload.get("panels") or [], now)
    _set_counter(canvas, payload.get("counter") or 0)
    db.add(canvas)
    db.commit()
    db.refresh(canvas)
    return canvas


def update_canvas(db: Session, canvas: Canvas, payload: dict) -> Canvas:
    """Save a canvas: title, snapshot time, full panel list and counter."""

    now = _utcnow()
    if "name" in payload and payload["name"] is not None:
        title = payload["name"].strip()
        if not title:
            raise ValueError("name is required")
        canvas.title = title
    if payload.get("last_snapshot_at") is not None:
        data = canvas.data_dict
        data["lastSnapshotAt"] = payload["last_snapshot_at"]
        canvas.data = _dump(data)
    if payload.get("panels") is not None:
        _set_panels(canvas, payload["panels"], now)
    if payload.get("counter") is not None:
        _set_counter(canvas, payload["counter"])
    canvas.updated_at = now
    db.commit()
    db.refresh(canvas)
    return canvas


def replace_panels(db: Session, canvas: Canvas, panels: Iterable[dict[str, Any]]) -> Canvas:
    return update_canvas(db, canvas, {"panels": list(panels)})


def delete_canvas(db: Session, canvas: Canvas) -> None:
    db.delete(canvas)
    db.commit()


def panel_configs(canvas: Canvas) -> list[dict[str, Any]]:
    return [panel.config_dict for panel in canvas.panels]


def get_counter_value(canvas: Canvas) -> float:
    return float(canvas.counter.value) if canvas.counter is not None else 0.0


def get_preferences(db: Session, user_id: str) -> dict[str, Any]:
    prefs = db.get(Preferences, user_id)
    return prefs.settings_dict if prefs is not None else {}


def update_preferences(db: Session, user_id: str, settings: dict[str, Any]) -> dict[str, Any]:
    prefs = db.get(Preferences, user_id)
    if prefs is None:
        prefs = Preferences(user_id=user_id, settings=_dump(settings), updated_at=_utcnow())
        db.add(prefs)
    else:
        prefs.settings = _dump(settings)
        prefs.updated_at = _utcnow()
    db.commit()
    return prefs.settings_dict
