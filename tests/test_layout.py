"""Tests for panel geometry: overlap, sticking, snapping and insertion."""

import pytest

from paycheck.services import layout
from paycheck.services.layout import PANEL_GAP, PANEL_HEIGHT, PANEL_WIDTH

STEP_X = PANEL_WIDTH + PANEL_GAP
STEP_Y = PANEL_HEIGHT + PANEL_GAP


def panel(panel_id, x, y):
    return {"id": panel_id, "x": x, "y": y}


def assert_no_overlaps(panels):
    for i, a in enumerate(panels):
        for b in panels[i + 1:]:
            assert not layout.rects_overlap(a, b), (a, b)


def test_overlap_percentage_and_grouping():
    a = panel("a", 0, 0)
    assert layout.overlap_percentage(a, panel("b", 0, 0)) == 100
    assert layout.overlap_percentage(a, panel("b", 150, 0)) == 50
    assert layout.should_group(a, panel("b", 150, 100))
    assert not layout.should_group(a, panel("b", 200, 100))
    assert not layout.rects_overlap(a, panel("b", PANEL_WIDTH, 0))


def test_stuck_detection_and_neighbour_lookup():
    a = panel("a", 0, 0)
    right = panel("r", STEP_X + 1, 50)
    below = panel("d", 20, STEP_Y)
    panels = [a, right, below]
    assert layout.is_stuck_horizontal(a, right)
    assert layout.is_stuck_vertical(a, below)
    assert not layout.is_stuck_horizontal(a, panel("far", STEP_X + 5, 0))
    assert layout.find_neighbor_on_side(panels, a, "right") is right
    assert layout.find_neighbor_on_side(panels, right, "left") is a
    assert layout.find_neighbor_on_side(panels, a, "bottom") is below
    assert layout.find_neighbor_on_side(panels, a, "top") is None


def test_preview_position_and_space():
    base = panel("a", 400, 300)
    assert layout.preview_position(base, "left") == (400 - STEP_X, 300)
    assert layout.preview_position(base, "top") == (400, 300 - STEP_Y)
    with pytest.raises(ValueError):
        layout.preview_position(base, "middle")

    panels = [base, panel("b", 400 + STEP_X, 300)]
    assert not layout.has_space_for_panel(panels, "a", "right")
    assert layout.has_space_for_panel(panels, "a", "bottom")
    assert not layout.has_space_for_panel([panel("z", 0, 0)], "z", "left")


def test_snap_pulls_panel_onto_neighbour_edge():
    panels = [panel("a", 0, 0), panel("b", PANEL_WIDTH + 10, 30)]
    snapped = layout.snap_panel(panels, "b")
    assert snapped[1]["x"] == STEP_X
    assert snapped[1]["y"] == 30
    assert panels[1]["x"] == PANEL_WIDTH + 10


def test_snap_leaves_distant_panel_alone():
    panels = [panel("a", 0, 0), panel("b", 900, 900)]
    assert layout.snap_panel(panels, "b") == panels


def test_add_adjacent_panel_clamps_to_origin():
    result = layout.add_panel([panel("a", 100, 0)], "a", "left", new_id="n")
    added = result[-1]
    assert added["id"] == "n"
    assert added["x"] == 0
    assert added["title"] == "PayTracker"


def test_add_panel_validates_input():
    panels = [panel("a", 0, 0)]
    with pytest.raises(ValueError):
        layout.add_panel(panels, "a", "up")
    with pytest.raises(KeyError):
        layout.add_panel(panels, "missing", "right")
    with pytest.raises(KeyError):
        layout.add_panel(panels, "a", "right", neighbor_id="missing")


def test_insert_between_splits_seam_evenly():
    panels = [panel("a", 400, 0), panel("b", 400 + STEP_X, 0)]
    result = layout.insert_between(panels, "a", "b", "right", new_id="n")
    by_id = {p["id"]: p for p in result}
    assert by_id["a"]["x"] == 400 - STEP_X / 2
    assert by_id["b"]["x"] == 400 + STEP_X + STEP_X / 2
    assert by_id["n"]["x"] == by_id["a"]["x"] + STEP_X
    assert by_id["n"]["y"] == 0
    assert_no_overlaps(result)
    assert layout.is_stuck_horizontal(by_id["a"], by_id["n"])
    assert layout.is_stuck_horizontal(by_id["n"], by_id["b"])


def test_insert_between_from_left_side_matches_right_side():
    panels = [panel("a", 400, 0), panel("b", 400 + STEP_X, 0)]
    from_left = layout.insert_between(panels, "b", "a", "left", new_id="n")
    from_right = layout.insert_between(panels, "a", "b", "right", new_id="n")
    assert from_left == from_right


def test_insert_between_moves_smaller_chain_further():
    panels = [
        panel("a1", 400, 0),
        panel("a2", 400 + STEP_X, 0),
        panel("a3", 400 + 2 * STEP_X, 0),
        panel("b", 400 + 3 * STEP_X, 0),
    ]
    result = layout.insert_between(panels, "a3", "b", "right", new_id="n")
    by_id = {p["id"]: p for p in result}
    left_shift = 400 - by_id["a1"]["x"]
    right_shift = by_id["b"]["x"] - (400 + 3 * STEP_X)
    assert left_shift == pytest.approx(STEP_X / 4)
    assert right_shift == pytest.approx(3 * STEP_X / 4)
    assert_no_overlaps(result)


def test_insert_between_at_origin_pushes_second_chain():
    panels = [panel("a", 0, 0), panel("b", STEP_X, 0)]
    result = layout.insert_between(panels, "a", "b", "right", new_id="n")
    by_id = {p["id"]: p for p in result}
    assert by_id["a"]["x"] == 0
    assert by_id["n"]["x"] == STEP_X
    assert by_id["b"]["x"] == 2 * STEP_X
    assert_no_overlaps(result)


def test_insert_between_vertical_keeps_side_panel_clear():
    panels = [
        panel("top", 0, 400),
        panel("bottom", 0, 400 + STEP_Y),
        panel("side", STEP_X, 400 + STEP_Y),
    ]
    result = layout.insert_between(panels, "top", "bottom", "bottom", new_id="n")
    by_id = {p["id"]: p for p in result}
    assert by_id["n"]["x"] == 0
    assert by_id["n"]["y"] == by_id["top"]["y"] + STEP_Y
    assert_no_overlaps(result)


def test_detect_groups_reports_bounding_box():
    panels = [panel("a", 0, 0), panel("b", 100, 50), panel("c", 200, 100), panel("lone", 2000, 0)]
    groups = layout.detect_groups(panels)
    assert len(groups) == 1
    group = groups[0]
    assert set(group.panel_ids) == {"a", "b", "c"}
    assert (group.x, group.y) == (0, 0)
    assert (group.width, group.height) == (500, 300)


def test_move_panel_returns_new_list():
    panels = [panel("a", 0, 0)]
    moved = layout.move_panel(panels, "a", 10, 20)
    assert moved == [{"id": "a", "x": 10, "y": 20}]
    assert panels == [{"id": "a", "x": 0, "y": 0}]


def test_add_panel_rejects_neighbour_on_the_wrong_side():
    panels = [panel("a", 400, 0), panel("l", 400 - STEP_X, 0)]
    assert layout.is_stuck_on_side(panels[0], panels[1], "left")
    with pytest.raises(ValueError):
        layout.add_panel(panels, "a", "right", neighbor_id="l")
    assert panels == [panel("a", 400, 0), panel("l", 400 - STEP_X, 0)]


def test_add_panel_rejects_unrelated_neighbour():
    panels = [panel("a", 400, 0), panel("far", 1000, 500)]
    with pytest.raises(ValueError):
        layout.add_panel(panels, "a", "right", neighbor_id="far")


def test_add_panel_with_stuck_neighbour_inserts_between():
    panels = [panel("a", 400, 0), panel("l", 400 - STEP_X, 0)]
    result = layout.add_panel(panels, "a", "left", neighbor_id="l", new_id="n")
    by_id = {p["id"]: p for p in result}
    assert by_id["n"]["x"] == by_id["l"]["x"] + STEP_X
    assert by_id["a"]["x"] == by_id["n"]["x"] + STEP_X
    assert_no_overlaps(result)
