from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.errors import ApiError
from ..crud.canvases import (
    create_canvas,
    delete_canvas,
    get_canvas,
    get_counter_value,
    list_canvases,
    panel_configs,
    update_canvas,
)
from ..db.session import get_db
from ..deps.auth import require_user
from ..models.canvas import Canvas
from ..models.user import User
from ..schemas.auth import MessageResponse
from ..schemas.canvas import (
    AddPanelRequest,
    CanvasCreate,
    CanvasOut,
    CanvasSave,
    EarningsOut,
    GroupsOut,
    MovePanelRequest,
    PanelEarnings,
)
from ..schemas.panel import PanelConfig, PanelState
from ..services import layout
from ..services.earnings import advance_running_panels, compute_earnings, elapsed_seconds
from ..services.timecalc import now_ms

logger = logging.getLogger("paycheck.canvases")

router = APIRouter(prefix="/api/canvases", tags=["canvases"])


def _canvas_to_schema(canvas: Canvas) -> CanvasOut:
    return CanvasOut(
        id=canvas.id,
        name=canvas.title,
        panels=[PanelConfig.model_validate(config) for config in panel_configs(canvas)],
        last_snapshot_at=canvas.last_snapshot_at,
        counter=get_counter_value(canvas),
        created_at=canvas.created_at,
        updated_at=canvas.updated_at,
    )


def _layout_panels(canvas: Canvas) -> list[dict[str, Any]]:
    return [PanelConfig.model_validate(config).as_layout() for config in panel_configs(canvas)]


def _owned_canvas(db: Session, canvas_id: int, user: User) -> Canvas:
    canvas = get_canvas(db, canvas_id, user_id=user.id)
    if canvas is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Canvas not found")
    return canvas


def _dump_panels(panels: list[PanelConfig] | None) -> list[dict[str, Any]] | None:
    if panels is None:
        return None
    return [panel.as_layout() for panel in panels]


@router.get("", response_model=list[CanvasOut])
def api_list_canvases(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return [_canvas_to_schema(canvas) for canvas in list_canvases(db, user.id)]


@router.post("", response_model=CanvasOut, status_code=201)
def api_create_canvas(
    payload: CanvasCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    data = {
        "name": payload.name,
        "panels": _dump_panels(payload.panels),
        "last_snapshot_at": payload.last_snapshot_at,
        "counter": payload.counter,
    }
    try:
        canvas = create_canvas(db, user.id, data)
    except ValueError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    logger.info("canvas.created", extra={"extra_data": {"canvas_id": canvas.id}})
    return _canvas_to_schema(canvas)


@router.get("/{canvas_id}", response_model=CanvasOut)
def api_get_canvas(canvas_id: int, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return _canvas_to_schema(_owned_canvas(db, canvas_id, user))


@router.put("/{canvas_id}", response_model=CanvasOut)
def api_save_canvas(
    canvas_id: int,
    payload: CanvasSave,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    canvas = _owned_canvas(db, canvas_id, user)
    data = {
        "name": payload.name,
        "panels": _dump_panels(payload.panels),
        "last_snapshot_at": payload.last_snapshot_at,
        "counter": payload.counter,
    }
    try:
        canvas = update_canvas(db, canvas, data)
    except ValueError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    return _canvas_to_schema(canvas)


@router.delete("/{canvas_id}", response_model=MessageResponse)
def api_delete_canvas(canvas_id: int, db: Session = Depends(get_db), user: User = Depends(require_user)):
    canvas = _owned_canvas(db, canvas_id, user)
    delete_canvas(db, canvas)
    logger.info("canvas.deleted", extra={"extra_data": {"canvas_id": canvas_id}})
    return MessageResponse(success=True, message="Canvas deleted")


@router.post("/{canvas_id}/open", response_model=CanvasOut)
def api_open_canvas(canvas_id: int, db: Session = Depends(get_db), user: User = Depends(require_user)):
    canvas = _owned_canvas(db, canvas_id, user)
    now = now_ms()
    panels = advance_running_panels(_layout_panels(canvas), canvas.last_snapshot_at, now)
    canvas = update_canvas(db, canvas, {"panels": panels, "last_snapshot_at": now})
    return _canvas_to_schema(canvas)


@router.post("/{canvas_id}/panels", response_model=CanvasOut, status_code=201)
def api_add_panel(
    canvas_id: int,
    payload: AddPanelRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    canvas = _owned_canvas(db, canvas_id, user)
    try:
        panels = layout.add_panel(_layout_panels(canvas), payload.panel_id, payload.side, payload.neighbor_id)
    except KeyError as exc:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Panel not found") from exc
    except ValueError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    canvas = update_canvas(db, canvas, {"panels": panels})
    return _canvas_to_schema(canvas)


@router.post("/{canvas_id}/panels/{panel_id}/move", response_model=CanvasOut)
def api_move_panel(
    canvas_id: int,
    panel_id: str,
    payload: MovePanelRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    canvas = _owned_canvas(db, canvas_id, user)
    panels = _layout_panels(canvas)
    if not any(panel["id"] == panel_id for panel in panels):
        raise ApiError(status.HTTP_404_NOT_FOUND, "Panel not found")
    panels = layout.move_panel(panels, panel_id, payload.x, payload.y)
    panels = layout.snap_panel(panels, panel_id)
    canvas = update_canvas(db, canvas, {"panels": panels})
    return _canvas_to_schema(canvas)


@router.get("/{canvas_id}/groups", response_model=GroupsOut)
def api_canvas_groups(canvas_id: int, db: Session = Depends(get_db), user: User = Depends(require_user)):
    canvas = _owned_canvas(db, canvas_id, user)
    return GroupsOut(groups=layout.detect_groups(_layout_panels(canvas)))


@router.get("/{canvas_id}/earnings", response_model=EarningsOut)
def api_canvas_earnings(canvas_id: int, db: Session = Depends(get_db), user: User = Depends(require_user)):
    canvas = _owned_canvas(db, canvas_id, user)
    now = now_ms()
    rows: list[PanelEarnings] = []
    for config in panel_configs(canvas):
        panel = PanelConfig.model_validate(config)
        state = panel.state or PanelState()
        rows.append(
            PanelEarnings(
                panel_id=panel.id,
                title=panel.title,
                is_running=state.is_running,
                elapsed_seconds=elapsed_seconds(state, now),
                earnings=round(compute_earnings(state, now), 2),
            )
        )
    return EarningsOut(panels=rows, total=round(sum(row.earnings for row in rows), 2))
