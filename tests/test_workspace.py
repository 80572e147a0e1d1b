"""Tests for the in-memory canvas library and viewport."""

import pytest

from paycheck.services.layout import PANEL_GAP, PANEL_HEIGHT, PANEL_WIDTH
from paycheck.services.workspace import ZOOM_MAX, ZOOM_MIN, Workspace


class FakeClock:
    def __init__(self, now=1_000_000):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def workspace(clock):
    return Workspace(viewport=(1000, 600), clock=clock)


def test_starts_with_one_centered_panel(workspace):
    assert [c.name for c in workspace.canvases] == ["Canvas 1"]
    assert len(workspace.panels) == 1
    only = workspace.panels[0]
    assert (only["x"], only["y"]) == ((1000 - PANEL_WIDTH) / 2, (600 - PANEL_HEIGHT) / 2)


def test_add_move_undo_redo(workspace):
    base_id = workspace.panels[0]["id"]
    workspace.add_panel(base_id, "right")
    assert len(workspace.panels) == 2
    assert workspace.panels[1]["x"] == workspace.panels[0]["x"] + PANEL_WIDTH + PANEL_GAP

    workspace.move_panel(base_id, 10, 10)
    assert workspace.panels[0]["x"] == 10

    assert workspace.undo() is True
    assert workspace.panels[0]["x"] != 10
    assert workspace.undo() is True
    assert len(workspace.panels) == 1
    assert workspace.undo() is False

    assert workspace.redo() is True
    assert len(workspace.panels) == 2
    assert workspace.history.redo_length == 1


def test_end_drag_records_snap_only_when_it_moves(workspace):
    base = workspace.panels[0]
    workspace.add_panel(base["id"], "right")
    new_id = workspace.panels[1]["id"]

    workspace.start_drag()
    workspace.move_panel(new_id, base["x"] + PANEL_WIDTH + 5, base["y"])
    before = workspace.history.history_length
    workspace.end_drag(new_id)
    assert workspace.dragging is False
    assert workspace.history.history_length == before + 1
    assert workspace.history.undo().action_type == "SNAP_PANEL"

    workspace.redo()
    before = workspace.history.history_length
    workspace.end_drag(new_id)
    assert workspace.history.history_length == before


def test_update_and_remove_panel(workspace):
    panel_id = workspace.panels[0]["id"]
    workspace.update_panel_state(panel_id, {"isRunning": True, "hourlyRate": 20})
    assert workspace.panels[0]["state"]["hourlyRate"] == 20
    workspace.remove_panel(panel_id)
    assert workspace.panels == []
    workspace.undo()
    assert workspace.panels[0]["id"] == panel_id


def test_create_and_switch_canvas_snapshots_active(workspace, clock):
    first_id = workspace.active_canvas_id
    first_panel = workspace.panels[0]["id"]
    workspace.update_panel_state(first_panel, {"isRunning": True, "accumulatedSeconds": 0})

    second = workspace.create_canvas()
    assert second.name == "Canvas 2"
    assert workspace.active_canvas_id == second.id
    assert not workspace.history.can_undo

    clock.now += 60_000
    assert workspace.open_canvas(first_id) is True
    assert workspace.panels[0]["state"]["accumulatedSeconds"] == pytest.approx(60)
    assert workspace.open_canvas(first_id) is False
    assert workspace.open_canvas("missing") is False


def test_rename_and_delete_canvas(workspace):
    canvas_id = workspace.active_canvas_id
    assert workspace.rename_canvas(canvas_id, "  Side gig ") is True
    assert workspace.active_canvas.name == "Side gig"
    assert workspace.rename_canvas(canvas_id, "   ") is False

    assert workspace.delete_canvas(canvas_id) is True
    assert len(workspace.canvases) == 1
    assert workspace.active_canvas.name == "Canvas 1"
    assert workspace.active_canvas_id != canvas_id
    assert workspace.delete_canvas("missing") is False


def test_zoom_is_clamped_and_rounded(workspace):
    assert workspace.wheel(-1) == 1.1
    assert workspace.wheel(1) == 1.0
    assert workspace.set_scale(50) == ZOOM_MAX
    assert workspace.set_scale(0) == ZOOM_MIN
    assert workspace.set_scale(1.234) == 1.23
    assert workspace.pan(5, -3) == (5, -3)
