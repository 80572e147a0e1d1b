"""Geometry for panels on the canvas: overlap, sticking, snapping and insertion.

Panels are plain mappings with at least ``id``, ``x`` and ``y`` (the JSON the
client stores), all the same fixed size. Functions never mutate their input;
they return new panel lists.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Any, Iterable, Mapping, Sequence

from ..schemas.panel import DEFAULT_PANEL_TITLE, PanelGroup

PANEL_WIDTH = 300
PANEL_HEIGHT = 200
PANEL_GAP = 16
STICK_THRESHOLD = 16
STUCK_EPSILON = 2
GROUP_OVERLAP_PERCENT = 25
MAX_RESOLVE_PASSES = 200

SIDES = ("top", "right", "bottom", "left")
HORIZONTAL_SIDES = ("left", "right")

Panel = Mapping[str, Any]


def new_panel_id() -> str:
    return f"panel-{int(time.time() * 1000)}"


def _unique_panel_id(panels: Iterable[Panel]) -> str:
    taken = {p["id"] for p in panels}
    candidate = new_panel_id()
    suffix = 1
    while candidate in taken:
        candidate = f"{new_panel_id()}-{suffix}"
        suffix += 1
    return candidate


def _find(panels: Iterable[Panel], panel_id: str) -> Panel | None:
    return next((p for p in panels if p["id"] == panel_id), None)


def rects_overlap(a: Panel, b: Panel) -> bool:
    return not (
        a["x"] + PANEL_WIDTH <= b["x"]
        or b["x"] + PANEL_WIDTH <= a["x"]
        or a["y"] + PANEL_HEIGHT <= b["y"]
        or b["y"] + PANEL_HEIGHT <= a["y"]
    )


def horizontal_overlap(a: Panel, b: Panel) -> float:
    return max(0, min(a["x"] + PANEL_WIDTH, b["x"] + PANEL_WIDTH) - max(a["x"], b["x"]))


def vertical_overlap(a: Panel, b: Panel) -> float:
    return max(0, min(a["y"] + PANEL_HEIGHT, b["y"] + PANEL_HEIGHT) - max(a["y"], b["y"]))


def overlap_percentage(a: Panel, b: Panel) -> float:
    """Shared area as a percentage (0-100) of one panel's area."""
    return horizontal_overlap(a, b) * vertical_overlap(a, b) / (PANEL_WIDTH * PANEL_HEIGHT) * 100


def should_group(a: Panel, b: Panel) -> bool:
    return overlap_percentage(a, b) >= GROUP_OVERLAP_PERCENT


def _is_right_of(base: Panel, other: Panel) -> bool:
    return abs(base["x"] + PANEL_WIDTH + PANEL_GAP - other["x"]) <= STUCK_EPSILON


def _is_below(base: Panel, other: Panel) -> bool:
    return abs(base["y"] + PANEL_HEIGHT + PANEL_GAP - other["y"]) <= STUCK_EPSILON


def is_stuck_horizontal(a: Panel, b: Panel) -> bool:
    return (_is_right_of(a, b) or _is_right_of(b, a)) and vertical_overlap(a, b) > 0


def is_stuck_vertical(a: Panel, b: Panel) -> bool:
    return (_is_below(a, b) or _is_below(b, a)) and horizontal_overlap(a, b) > 0


def is_stuck_on_side(base: Panel, other: Panel, side: str) -> bool:
    """True when ``other`` sits one gap away from ``base`` on ``side``."""
    if side == "right":
        return is_stuck_horizontal(base, other) and _is_right_of(base, other)
    if side == "left":
        return is_stuck_horizontal(base, other) and _is_right_of(other, base)
    if side == "bottom":
        return is_stuck_vertical(base, other) and _is_below(base, other)
    if side == "top":
        return is_stuck_vertical(base, other) and _is_below(other, base)
    return False


def find_neighbor_on_side(panels: Iterable[Panel], base: Panel, side: str) -> Panel | None:
    """Return the panel stuck to ``base`` on ``side``, if any."""
    for other in panels:
        if other["id"] != base["id"] and is_stuck_on_side(base, other, side):
            return other
    return None


def preview_position(base: Panel, side: str) -> tuple[float, float]:
    """The adjacent slot on ``side`` of ``base``, unclamped."""
    x, y = base["x"], base["y"]
    if side == "right":
        x = base["x"] + PANEL_WIDTH + PANEL_GAP
    elif side == "left":
        x = base["x"] - PANEL_WIDTH - PANEL_GAP
    elif side == "bottom":
        y = base["y"] + PANEL_HEIGHT + PANEL_GAP
    elif side == "top":
        y = base["y"] - PANEL_HEIGHT - PANEL_GAP
    else:
        raise ValueError(f"unknown side: {side}")
    return x, y


def has_space_for_panel(panels: Sequence[Panel], panel_id: str, side: str) -> bool:
    base = _find(panels, panel_id)
    if base is None:
        return False
    x, y = preview_position(base, side)
    if x < 0 or y < 0:
        return False
    slot = {"id": None, "x": x, "y": y}
    return not any(rects_overlap(slot, p) for p in panels if p["id"] != panel_id)


def move_panel(panels: Sequence[Panel], panel_id: str, x: float, y: float) -> list[dict[str, Any]]:
    return [{**p, "x": x, "y": y} if p["id"] == panel_id else dict(p) for p in panels]


def snap_panel(panels: Sequence[Panel], panel_id: str) -> list[dict[str, Any]]:
    """Pull a just-dropped panel onto its neighbours' edges, one gap apart."""

    me = _find(panels, panel_id)
    if me is None:
        return [dict(p) for p in panels]
    snap_x, snap_y = me["x"], me["y"]
    did_snap = False
    for other in panels:
        if other["id"] == panel_id:
            continue
        vert_overlap = not (me["y"] + PANEL_HEIGHT < other["y"] or other["y"] + PANEL_HEIGHT < me["y"])
        if vert_overlap:
            if abs(me["x"] + PANEL_WIDTH - other["x"]) <= STICK_THRESHOLD:
                snap_x = other["x"] - PANEL_WIDTH - PANEL_GAP
                did_snap = True
            elif abs(me["x"] - (other["x"] + PANEL_WIDTH)) <= STICK_THRESHOLD:
                snap_x = other["x"] + PANEL_WIDTH + PANEL_GAP
                did_snap = True
        horiz_overlap = not (me["x"] + PANEL_WIDTH < other["x"] or other["x"] + PANEL_WIDTH < me["x"])
        if horiz_overlap:
            if abs(me["y"] + PANEL_HEIGHT - other["y"]) <= STICK_THRESHOLD:
                snap_y = other["y"] - PANEL_HEIGHT - PANEL_GAP
                did_snap = True
            elif abs(me["y"] - (other["y"] + PANEL_HEIGHT)) <= STICK_THRESHOLD:
                snap_y = other["y"] + PANEL_HEIGHT + PANEL_GAP
                did_snap = True
    if not did_snap:
        return [dict(p) for p in panels]
    return move_panel(panels, panel_id, snap_x, snap_y)


def _blank_panel(panel_id: str, x: float, y: float) -> dict[str, Any]:
    return {"id": panel_id, "x": x, "y": y, "title": DEFAULT_PANEL_TITLE}


def add_adjacent_panel(panels: Sequence[Panel], panel_id: str, side: str, new_id: str | None = None) -> list[dict[str, Any]]:
    base = _find(panels, panel_id)
    if base is None:
        return [dict(p) for p in panels]
    x, y = preview_position(base, side)
    panel = _blank_panel(new_id or _unique_panel_id(panels), max(0, x), max(0, y))
    return [dict(p) for p in panels] + [panel]


def _stuck(a: Panel, b: Panel, horizontal: bool) -> bool:
    return is_stuck_horizontal(a, b) if horizontal else is_stuck_vertical(a, b)


def _center(panel: Panel, horizontal: bool) -> float:
    return panel["x"] + PANEL_WIDTH / 2 if horizontal else panel["y"] + PANEL_HEIGHT / 2


def seam_groups(panels: Sequence[Panel], first: Panel, second: Panel, horizontal: bool) -> tuple[set[str], set[str]]:
    """Stuck chains on each side of the seam between ``first`` and ``second``.

    BFS over panels stuck along the axis, ignoring stuck pairs that straddle
    the seam line so the two sides stay separate.
    """

    seam = (
        (first["x"] + PANEL_WIDTH + second["x"]) / 2
        if horizontal
        else (first["y"] + PANEL_HEIGHT + second["y"]) / 2
    )
    adjacency: dict[str, list[str]] = {p["id"]: [] for p in panels}
    for i, a in enumerate(panels):
        for b in panels[i + 1:]:
            if not _stuck(a, b, horizontal):
                continue
            if (_center(a, horizontal) <= seam) != (_center(b, horizontal) <= seam):
                continue
            adjacency[a["id"]].append(b["id"])
            adjacency[b["id"]].append(a["id"])

    def bfs(start: str) -> set[str]:
        seen = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for nxt in adjacency.get(current, ()):
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return seen

    return bfs(first["id"]), bfs(second["id"])


def _shift(panel: dict[str, Any], amount: float, horizontal: bool) -> None:
    key = "x" if horizontal else "y"
    panel[key] = max(0, panel[key] + amount)


def _resolve_overlaps(
    panels: list[dict[str, Any]], seam: float, horizontal: bool, pinned: set[str]
) -> None:
    """Push overlapping panels away from the seam until none overlap (bounded)."""

    for _ in range(MAX_RESOLVE_PASSES):
        fixed_any = False
        for i, a in enumerate(panels):
            for b in panels[i + 1:]:
                if not rects_overlap(a, b):
                    continue
                for mover in sorted((a, b), key=lambda p: -abs(_center(p, horizontal) - seam)):
                    if mover["id"] in pinned:
                        continue
                    direction = -1 if _center(mover, horizontal) <= seam else 1
                    key = "x" if horizontal else "y"
                    before = mover[key]
                    _shift(mover, direction * PANEL_GAP, horizontal)
                    if mover[key] != before:
                        fixed_any = True
                        break
        if not fixed_any:
            return


def insert_between(
    panels: Sequence[Panel], base_id: str, neighbor_id: str, side: str, new_id: str | None = None
) -> list[dict[str, Any]]:
    """Open a one-panel seam between two stuck panels and drop a new panel in it.

    The chains on either side move apart in proportion to the size of the
    opposite chain, so the smaller side moves further.
    """

    base = _find(panels, base_id)
    neighbor = _find(panels, neighbor_id)
    if base is None or neighbor is None:
        return [dict(p) for p in panels]
    horizontal = side in HORIZONTAL_SIDES
    if side in ("right", "bottom"):
        first, second = base, neighbor
    else:
        first, second = neighbor, base

    first_set, second_set = seam_groups(panels, first, second, horizontal)
    second_set -= first_set
    total = max(1, len(first_set) + len(second_set))
    extent = (PANEL_WIDTH if horizontal else PANEL_HEIGHT) + PANEL_GAP
    shift_first = extent * len(second_set) / total
    shift_second = extent * len(first_set) / total

    # the first chain cannot cross the origin; the second chain takes the rest
    key = "x" if horizontal else "y"
    room = min(p[key] for p in panels if p["id"] in first_set)
    if shift_first > room:
        shift_second += shift_first - room
        shift_first = room

    result = [dict(p) for p in panels]
    for panel in result:
        if panel["id"] in first_set:
            _shift(panel, -shift_first, horizontal)
        elif panel["id"] in second_set:
            _shift(panel, shift_second, horizontal)

    moved_first = _find(result, first["id"])
    moved_second = _find(result, second["id"])
    if horizontal:
        x = moved_first["x"] + PANEL_WIDTH + PANEL_GAP
        top = max(first["y"], second["y"])
        bottom = min(first["y"] + PANEL_HEIGHT, second["y"] + PANEL_HEIGHT)
        y = max(0, (top + bottom) / 2 - PANEL_HEIGHT / 2)
        seam = x + PANEL_WIDTH / 2
    else:
        y = moved_first["y"] + PANEL_HEIGHT + PANEL_GAP
        left = max(first["x"], second["x"])
        right = min(first["x"] + PANEL_WIDTH, second["x"] + PANEL_WIDTH)
        x = max(0, (left + right) / 2 - PANEL_WIDTH / 2)
        seam = y + PANEL_HEIGHT / 2

    panel = _blank_panel(new_id or _unique_panel_id(panels), x, y)
    result.append(panel)
    _resolve_overlaps(result, seam, horizontal, pinned={panel["id"]})
    return result


def add_panel(
    panels: Sequence[Panel],
    panel_id: str,
    side: str,
    neighbor_id: str | None = None,
    new_id: str | None = None,
) -> list[dict[str, Any]]:
    """The "+" button action: insert between stuck panels or add alongside."""

    if side not in SIDES:
        raise ValueError(f"unknown side: {side}")
    base = _find(panels, panel_id)
    if base is None:
        raise KeyError(panel_id)
    if neighbor_id:
        neighbor = _find(panels, neighbor_id)
        if neighbor is None:
            raise KeyError(neighbor_id)
        if not is_stuck_on_side(base, neighbor, side):
            raise ValueError(f"{neighbor_id} is not stuck to the {side} of {panel_id}")
        return insert_between(panels, panel_id, neighbor_id, side, new_id)
    return add_adjacent_panel(panels, panel_id, side, new_id)


def detect_groups(panels: Sequence[Panel]) -> list[PanelGroup]:
    """Clusters of panels that overlap enough to be shown as one container."""

    seen: set[str] = set()
    groups: list[PanelGroup] = []
    for start in panels:
        if start["id"] in seen:
            continue
        members = [start]
        seen.add(start["id"])
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for other in panels:
                if other["id"] in seen or not should_group(current, other):
                    continue
                seen.add(other["id"])
                members.append(other)
                queue.append(other)
        if len(members) < 2:
            continue
        left = min(p["x"] for p in members)
        top = min(p["y"] for p in members)
        right = max(p["x"] + PANEL_WIDTH for p in members)
        bottom = max(p["y"] + PANEL_HEIGHT for p in members)
        groups.append(
            PanelGroup(
                panel_ids=[p["id"] for p in members],
                x=left,
                y=top,
                width=right - left,
                height=bottom - top,
            )
        )
    return groups
