"""Placement of the floating "+" button that adds panels.

The detector is fed pointer positions (already converted to canvas/world
coordinates) and decides which panel edge, if any, the button attaches to.
It damps flicker with throttling, an edge lock after each switch, a
positional dead-band and a short delayed hide.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Sequence

from .layout import PANEL_HEIGHT, PANEL_WIDTH, Panel, find_neighbor_on_side

EDGE_TRIGGER_RADIUS = 30
EDGE_HYSTERESIS = 10
EDGE_LOCK_TIMEOUT = 1000
CLICK_PROTECTION_TIMEOUT = 1500
THROTTLE_DELAY = 30
POSITION_CHANGE_THRESHOLD = 8
LARGE_MOVE_PX = 15
HIDE_DELAY = 300
BUTTON_OFFSET = 16


@dataclass(frozen=True)
class PlusState:
    panel_id: str
    side: str
    x: float
    y: float
    timestamp: int
    neighbor_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "panelId": self.panel_id,
            "side": self.side,
            "x": self.x,
            "y": self.y,
            "timestamp": self.timestamp,
        }
        if self.neighbor_id:
            payload["neighborId"] = self.neighbor_id
        return payload


@dataclass
class _EdgeLock:
    panel_id: str | None = None
    side: str | None = None
    locked_until: int = 0


def to_world(client_x: float, client_y: float, origin: tuple[float, float], scale: float) -> tuple[float, float]:
    """Convert a pointer position to canvas coordinates under the current zoom."""
    return (client_x - origin[0]) / scale, (client_y - origin[1]) / scale


def edge_distance(panel: Panel, side: str, x: float, y: float, radius: float) -> tuple[float, bool]:
    """Distance from ``(x, y)`` to one edge and whether it lies along that edge's extent."""
    if side in ("left", "right"):
        edge_x = panel["x"] if side == "left" else panel["x"] + PANEL_WIDTH
        within = panel["y"] - radius <= y <= panel["y"] + PANEL_HEIGHT + radius
        return abs(x - edge_x), within
    edge_y = panel["y"] if side == "top" else panel["y"] + PANEL_HEIGHT
    within = panel["x"] - radius <= x <= panel["x"] + PANEL_WIDTH + radius
    return abs(y - edge_y), within


def button_position(base: Panel, side: str, neighbor: Panel | None) -> tuple[float, float]:
    if neighbor is not None:
        if side in ("left", "right"):
            right_edge = max(base["x"], neighbor["x"])
            left_panel_edge = min(base["x"], neighbor["x"]) + PANEL_WIDTH
            x = (left_panel_edge + right_edge) / 2
            top = max(base["y"], neighbor["y"])
            bottom = min(base["y"] + PANEL_HEIGHT, neighbor["y"] + PANEL_HEIGHT)
            return x, (top + bottom) / 2
        bottom_edge = max(base["y"], neighbor["y"])
        top_panel_edge = min(base["y"], neighbor["y"]) + PANEL_HEIGHT
        y = (top_panel_edge + bottom_edge) / 2
        left = max(base["x"], neighbor["x"])
        right = min(base["x"] + PANEL_WIDTH, neighbor["x"] + PANEL_WIDTH)
        return (left + right) / 2, y

    x = base["x"] + PANEL_WIDTH / 2
    y = base["y"] + PANEL_HEIGHT / 2
    if side == "left":
        x = base["x"] - BUTTON_OFFSET
    elif side == "right":
        x = base["x"] + PANEL_WIDTH + BUTTON_OFFSET
    elif side == "top":
        y = base["y"] - BUTTON_OFFSET
    elif side == "bottom":
        y = base["y"] + PANEL_HEIGHT + BUTTON_OFFSET
    return x, y


class EdgeDetector:
    def __init__(self) -> None:
        self.plus_state: PlusState | None = None
        self.is_clicking = False
        self.protected_until = 0
        self._stable: PlusState | None = None
        self._lock = _EdgeLock()
        self._last_mouse: tuple[float, float] | None = None
        self._last_call: int | None = None
        self._hide_at: int | None = None

    def hide(self) -> None:
        self.plus_state = None
        self._stable = None
        self._hide_at = None

    def press(self, now: int) -> None:
        """The button is being clicked: widen its hold and protect it briefly."""
        self.is_clicking = True
        self.protected_until = now + CLICK_PROTECTION_TIMEOUT

    def release(self) -> None:
        self.is_clicking = False

    def tick(self, now: int) -> PlusState | None:
        if self._hide_at is not None and now >= self._hide_at:
            self.hide()
        return self.plus_state

    def on_mouse_move(
        self,
        panels: Sequence[Panel],
        x: float,
        y: float,
        now: int,
        *,
        client: tuple[float, float] | None = None,
        dragging: bool = False,
        over_plus: bool = False,
        interactive: bool = False,
    ) -> PlusState | None:
        if not panels:
            return self.plus_state
        if self._last_call is not None and now - self._last_call < THROTTLE_DELAY:
            return self.plus_state
        self._last_call = now

        pointer = client if client is not None else (x, y)
        large_move = False
        if self._last_mouse is not None:
            large_move = (
                abs(pointer[0] - self._last_mouse[0]) > LARGE_MOVE_PX
                or abs(pointer[1] - self._last_mouse[1]) > LARGE_MOVE_PX
            )
        self._last_mouse = pointer

        if over_plus:
            return self.plus_state
        if dragging:
            self.hide()
            return None

        protected = self.protected_until > now
        if interactive or protected:
            if self.plus_state is not None and self._hide_at is None:
                self._hide_at = now + HIDE_DELAY
            return self.plus_state
        self._hide_at = None

        radius: float = EDGE_TRIGGER_RADIUS
        if self.plus_state is not None and self.is_clicking:
            radius += EDGE_HYSTERESIS * 0.8
        if large_move and not self.is_clicking:
            radius = max(EDGE_TRIGGER_RADIUS * 1.2, radius * 0.7)

        best = self._locked_candidate(panels, x, y, radius, now)
        if best is None:
            best = self._nearest_edge(panels, x, y, radius)

        if best is None:
            self._maybe_hide(panels, x, y, radius)
            return self.plus_state

        base, side = best
        neighbor = find_neighbor_on_side(panels, base, side)
        bx, by = button_position(base, side, neighbor)
        candidate = PlusState(
            panel_id=base["id"],
            side=side,
            x=bx,
            y=by,
            timestamp=now,
            neighbor_id=neighbor["id"] if neighbor is not None else None,
        )
        stable = self._stable
        significant = stable is not None and (
            abs(stable.x - bx) > POSITION_CHANGE_THRESHOLD or abs(stable.y - by) > POSITION_CHANGE_THRESHOLD
        )
        different_edge = stable is None or stable.panel_id != candidate.panel_id or stable.side != side
        if significant or different_edge or self.plus_state is None:
            self._stable = candidate
            if different_edge:
                self._lock = _EdgeLock(panel_id=candidate.panel_id, side=side, locked_until=now + EDGE_LOCK_TIMEOUT)
            self.plus_state = candidate
        elif self.plus_state.neighbor_id != candidate.neighbor_id:
            self.plus_state = replace(self.plus_state, neighbor_id=candidate.neighbor_id)
        return self.plus_state

    def _locked_candidate(self, panels: Sequence[Panel], x: float, y: float, radius: float, now: int):
        lock = self._lock
        if self.plus_state is None or lock.locked_until <= now or lock.panel_id is None:
            return None
        panel = next((p for p in panels if p["id"] == lock.panel_id), None)
        if panel is None:
            return None
        dist, within = edge_distance(panel, lock.side, x, y, radius)
        if within and dist <= radius * 2:
            return panel, lock.side
        return None

    def _nearest_edge(self, panels: Sequence[Panel], x: float, y: float, radius: float):
        best = None
        best_dist = float("inf")
        for panel in panels:
            for side in ("left", "right", "top", "bottom"):
                dist, within = edge_distance(panel, side, x, y, radius)
                if within and dist <= radius and dist < best_dist:
                    best = (panel, side)
                    best_dist = dist
        return best

    def _maybe_hide(self, panels: Sequence[Panel], x: float, y: float, radius: float) -> None:
        current = self.plus_state
        if current is None:
            return
        panel = next((p for p in panels if p["id"] == current.panel_id), None)
        if panel is not None:
            dist, within = edge_distance(panel, current.side, x, y, radius)
            if within and dist <= radius * 2:
                return
        self.hide()
