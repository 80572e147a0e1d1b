"""Tests for the panel timer arithmetic."""

import pytest

from paycheck.schemas.panel import PanelState
from paycheck.services.earnings import (
    EarningsTimer,
    advance_running_panels,
    compute_earnings,
    parse_rate,
)
from paycheck.services.timecalc import ONE_DAY_MS, parse_user_datetime

TZ = "UTC"
# 2024-05-01 09:00:00 UTC
T0 = 1_714_554_000_000


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += int(seconds * 1000)


@pytest.mark.parametrize(
    "text, expected",
    [("25", 25.0), ("$1,250.50", 1250.5), (" 12.5 ", 12.5), ("0", None), ("-4", None), ("abc", None), ("inf", None), (None, None)],
)
def test_parse_rate(text, expected):
    assert parse_rate(text) == expected


def test_start_requires_positive_rate():
    timer = EarningsTimer(clock=FakeClock(T0), tz=TZ)
    assert timer.start() is False
    assert timer.is_running is False


def test_running_timer_accrues_pay():
    clock = FakeClock(T0)
    timer = EarningsTimer(clock=clock, tz=TZ)
    assert timer.set_rate("36") is True
    assert timer.is_running is True
    assert timer.state.start_time == T0

    clock.advance(100)
    assert timer.elapsed() == pytest.approx(100)
    assert timer.earnings() == pytest.approx(1.0)


def test_pause_folds_live_time_and_resume_continues():
    clock = FakeClock(T0)
    timer = EarningsTimer(PanelState(hourly_rate=36), clock=clock, tz=TZ)
    timer.start()
    clock.advance(60)
    assert timer.pause() is True
    assert timer.state.accumulated_seconds == pytest.approx(60)
    assert timer.state.end_time == clock.now
    assert timer.state.running_since is None

    clock.advance(600)
    assert timer.elapsed() == pytest.approx(60)

    assert timer.toggle() is True
    assert timer.state.end_time is None
    assert timer.state.start_time == T0
    clock.advance(40)
    assert timer.elapsed() == pytest.approx(100)
    assert timer.pause() is True
    assert timer.pause() is False


def test_new_rate_restarts_from_zero():
    clock = FakeClock(T0)
    timer = EarningsTimer(PanelState(hourly_rate=20, accumulated_seconds=500), clock=clock, tz=TZ)
    clock.advance(10)
    assert timer.set_rate("bad") is False
    assert timer.state.accumulated_seconds == 500
    assert timer.set_rate("$40") is True
    assert timer.state.hourly_rate == 40
    assert timer.state.accumulated_seconds == 0
    assert timer.state.start_time == clock.now


def test_reset_counter_keeps_running():
    clock = FakeClock(T0)
    timer = EarningsTimer(PanelState(hourly_rate=36), clock=clock, tz=TZ)
    timer.start()
    clock.advance(300)
    timer.reset_counter()
    assert timer.is_running is True
    assert timer.elapsed() == 0
    clock.advance(10)
    assert timer.elapsed() == pytest.approx(10)


def test_edit_times_on_stopped_timer():
    clock = FakeClock(T0 + 8 * 3600 * 1000)
    timer = EarningsTimer(PanelState(hourly_rate=36), clock=clock, tz=TZ)
    assert timer.edit_times("2024-05-01 09:00", "2024-05-01 11:30") is True
    assert timer.state.accumulated_seconds == pytest.approx(2.5 * 3600)
    assert timer.earnings() == pytest.approx(90.0)


def test_edit_times_end_before_start_rolls_to_next_day():
    clock = FakeClock(T0)
    timer = EarningsTimer(PanelState(hourly_rate=10, start_time=T0, end_time=T0), clock=clock, tz=TZ)
    assert timer.edit_times("10pm", "2am") is True
    assert timer.state.end_time - timer.state.start_time == 4 * 3600 * 1000
    assert timer.state.end_time > T0 + ONE_DAY_MS / 2


def test_edit_times_rejects_unparseable_start():
    timer = EarningsTimer(PanelState(hourly_rate=10, accumulated_seconds=5), clock=FakeClock(T0), tz=TZ)
    assert timer.edit_times("someday") is False
    assert timer.state.accumulated_seconds == 5


def test_edit_times_with_end_stops_running_timer():
    clock = FakeClock(T0 + 3 * 3600 * 1000)
    timer = EarningsTimer(PanelState(hourly_rate=10), clock=clock, tz=TZ)
    timer.start()
    assert timer.edit_times("9:00", "10:00") is True
    assert timer.is_running is False
    assert timer.state.accumulated_seconds == pytest.approx(3600)


def test_time_display():
    clock = FakeClock(T0)
    timer = EarningsTimer(PanelState(hourly_rate=10), clock=clock, tz=TZ)
    assert timer.time_display() is None
    timer.start()
    assert timer.time_display() == "09:00"
    clock.advance(3600)
    timer.pause()
    assert timer.time_display() == "09:00 - 10:00"
    timer.state.end_time = T0 + ONE_DAY_MS
    assert timer.time_display() == "2024-05-01 09:00 - 2024-05-02 09:00"


def test_time_display_while_running_shows_start_only():
    clock = FakeClock(T0)
    timer = EarningsTimer(PanelState(hourly_rate=10), clock=clock, tz=TZ)
    timer.start()
    clock.advance(3 * 3600)
    assert timer.time_display() == "09:00"
    clock.advance(ONE_DAY_MS / 1000)
    assert timer.time_display() == "2024-05-01 09:00"


def test_editor_defaults():
    timer = EarningsTimer(PanelState(start_time=T0), clock=FakeClock(T0), tz=TZ)
    assert timer.editor_defaults() == ("2024-05-01 09:00", "")


def test_compute_earnings_includes_live_segment():
    state = PanelState(is_running=True, hourly_rate=3600, accumulated_seconds=10, running_since=T0)
    assert compute_earnings(state, T0 + 5000) == pytest.approx(15.0)


def test_advance_running_panels_credits_closed_time():
    panels = [
        {"id": "a", "state": {"isRunning": True, "accumulatedSeconds": 10}},
        {"id": "b", "state": {"isRunning": True, "accumulatedSeconds": 10, "runningSince": T0 - 20_000}},
        {"id": "c", "state": {"isRunning": False, "accumulatedSeconds": 10}},
        {"id": "d"},
    ]
    adjusted = advance_running_panels(panels, T0 - 30_000, T0)
    by_id = {panel["id"]: panel for panel in adjusted}
    assert by_id["a"]["state"]["accumulatedSeconds"] == pytest.approx(40)
    assert by_id["b"]["state"]["accumulatedSeconds"] == pytest.approx(30)
    assert by_id["a"]["state"]["runningSince"] == T0
    assert by_id["c"]["state"]["accumulatedSeconds"] == 10
    assert by_id["d"] == {"id": "d"}
    assert panels[0]["state"]["accumulatedSeconds"] == 10


def test_parse_user_datetime_uses_base_day():
    assert parse_user_datetime("3pm", T0, TZ) == T0 + 6 * 3600 * 1000
    assert parse_user_datetime("12am", T0, TZ) == T0 - 9 * 3600 * 1000
    assert parse_user_datetime("25:00", T0, TZ) is None
