"""In-memory canvas library for one client session.

A ``Workspace`` holds the user's canvases, which one is active, the active
canvas's panel list and the zoom level. Panel edits go through the layout
functions and are recorded in an undo/redo ``History``.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from ..core.config import settings
from .earnings import advance_running_panels
from .history import History
from .layout import PANEL_HEIGHT, PANEL_WIDTH, add_panel, move_panel, snap_panel
from .timecalc import now_ms

logger = logging.getLogger("paycheck.workspace")

ZOOM_MIN = 0.01
ZOOM_MAX = 10.0
ZOOM_STEP = 0.1


@dataclass
class LocalCanvas:
    id: str
    name: str
    panels: list[dict[str, Any]] = field(default_factory=list)
    last_snapshot_at: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "panels": copy.deepcopy(self.panels),
            "lastSnapshotAt": self.last_snapshot_at,
        }


class Workspace:
    def __init__(
        self,
        viewport: tuple[float, float] = (1280, 800),
        clock: Callable[[], int] = now_ms,
        history_limit: int | None = None,
    ) -> None:
        self.viewport = viewport
        self._clock = clock
        self._seq = 0
        self.history = History(history_limit or settings.HISTORY_LIMIT)
        self.scale = 1.0
        self.offset = (0.0, 0.0)
        self.dragging = False
        first = self._fresh_canvas("Canvas 1")
        self.canvases: list[LocalCanvas] = [first]
        self.active_canvas_id = first.id
        self.panels: list[dict[str, Any]] = copy.deepcopy(first.panels)

    # ---- ids and construction

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}-{self._clock()}-{self._seq}"

    def _centered_panel(self) -> dict[str, Any]:
        width, height = self.viewport
        return {
            "id": self._next_id("panel"),
            "x": max(0, (width - PANEL_WIDTH) / 2),
            "y": max(0, (height - PANEL_HEIGHT) / 2),
            "title": "PayTracker",
        }

    def _fresh_canvas(self, name: str) -> LocalCanvas:
        return LocalCanvas(
            id=self._next_id("canvas"),
            name=name,
            panels=[self._centered_panel()],
            last_snapshot_at=self._clock(),
        )

    def get_canvas(self, canvas_id: str) -> LocalCanvas | None:
        return next((c for c in self.canvases if c.id == canvas_id), None)

    @property
    def active_canvas(self) -> LocalCanvas:
        canvas = self.get_canvas(self.active_canvas_id)
        assert canvas is not None
        return canvas

    def _activate(self, canvas: LocalCanvas, panels: list[dict[str, Any]] | None = None) -> None:
        self.active_canvas_id = canvas.id
        self.panels = copy.deepcopy(panels if panels is not None else canvas.panels)
        # undo steps belong to the canvas they were made on
        self.history.clear()

    # ---- canvas library

    def snapshot_active(self) -> LocalCanvas:
        canvas = self.active_canvas
        canvas.panels = copy.deepcopy(self.panels)
        canvas.last_snapshot_at = self._clock()
        return canvas

    def open_canvas(self, canvas_id: str) -> bool:
        if canvas_id == self.active_canvas_id:
            return False
        target = self.get_canvas(canvas_id)
        if target is None:
            return False
        self.snapshot_active()
        now = self._clock()
        adjusted = advance_running_panels(target.panels, target.last_snapshot_at, now)
        self._activate(target, adjusted)
        logger.info("canvas.opened", extra={"extra_data": {"canvas_id": canvas_id}})
        return True

    def create_canvas(self) -> LocalCanvas:
        self.snapshot_active()
        canvas = self._fresh_canvas(f"Canvas {len(self.canvases) + 1}")
        self.canvases.append(canvas)
        self._activate(canvas)
        return canvas

    def rename_canvas(self, canvas_id: str, name: str | None) -> bool:
        canvas = self.get_canvas(canvas_id)
        if canvas is None or not name or not name.strip():
            return False
        canvas.name = name.strip()
        return True

    def delete_canvas(self, canvas_id: str) -> bool:
        if self.get_canvas(canvas_id) is None:
            return False
        if canvas_id != self.active_canvas_id:
            self.snapshot_active()
        self.canvases = [c for c in self.canvases if c.id != canvas_id]
        if not self.canvases:
            self.canvases = [self._fresh_canvas("Canvas 1")]
        self._activate(self.canvases[0])
        return True

    # ---- panels (recorded in history)

    def _commit(self, action_type: str, new_panels: list[dict[str, Any]]) -> list[dict[str, Any]]:
        self.history.record(action_type, {"panels": self.panels}, {"panels": new_panels})
        self.panels = new_panels
        return self.panels

    def start_drag(self) -> None:
        self.dragging = True

    def move_panel(self, panel_id: str, x: float, y: float) -> list[dict[str, Any]]:
        return self._commit("MOVE_PANEL", move_panel(self.panels, panel_id, x, y))

    def end_drag(self, panel_id: str) -> list[dict[str, Any]]:
        self.dragging = False
        snapped = snap_panel(self.panels, panel_id)
        if snapped == self.panels:
            return self.panels
        return self._commit("SNAP_PANEL", snapped)

    def add_panel(self, panel_id: str, side: str, neighbor_id: str | None = None) -> list[dict[str, Any]]:
        new_panels = add_panel(self.panels, panel_id, side, neighbor_id, new_id=self._next_id("panel"))
        return self._commit("ADD_PANEL", new_panels)

    def update_panel_state(self, panel_id: str, state: dict[str, Any]) -> list[dict[str, Any]]:
        new_panels = [{**p, "state": dict(state)} if p["id"] == panel_id else dict(p) for p in self.panels]
        return self._commit("UPDATE_PANEL", new_panels)

    def remove_panel(self, panel_id: str) -> list[dict[str, Any]]:
        return self._commit("REMOVE_PANEL", [dict(p) for p in self.panels if p["id"] != panel_id])

    def undo(self) -> bool:
        entry = self.history.undo()
        if entry is None:
            return False
        with self.history.applying():
            self.panels = copy.deepcopy(entry.prev_state["panels"])
        return True

    def redo(self) -> bool:
        entry = self.history.redo()
        if entry is None:
            return False
        with self.history.applying():
            self.panels = copy.deepcopy(entry.next_state["panels"])
        return True

    # ---- viewport

    def set_scale(self, scale: float) -> float:
        self.scale = max(ZOOM_MIN, min(ZOOM_MAX, round(scale, 2)))
        return self.scale

    def wheel(self, delta_y: float) -> float:
        """Zoom one step in for an upward wheel motion, out otherwise."""
        step = ZOOM_STEP if delta_y < 0 else -ZOOM_STEP
        return self.set_scale(self.scale + step)

    def pan(self, dx: float, dy: float) -> tuple[float, float]:
        self.offset = (self.offset[0] + dx, self.offset[1] + dy)
        return self.offset
