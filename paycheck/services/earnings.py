"""Running-pay arithmetic for a single panel timer.

``EarningsTimer`` owns a ``PanelState`` and mutates it in response to the
same actions the panel exposes (start, pause, rate entry, counter reset and
manual start/end edits). Time is passed in as epoch milliseconds so callers
and tests control the clock.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable

from ..schemas.panel import PanelState
from .timecalc import (
    ONE_DAY_MS,
    format_date_only,
    format_date_time,
    format_time_only,
    now_ms,
    parse_user_datetime,
)

SECONDS_PER_HOUR = 3600


def dollars_per_second(hourly_rate: float | None) -> float:
    return hourly_rate / SECONDS_PER_HOUR if hourly_rate else 0.0


def parse_rate(text: str | float | None) -> float | None:
    """Return a positive finite hourly rate or ``None``."""
    if text is None:
        return None
    try:
        rate = float(str(text).strip().replace("$", "").replace(",", ""))
    except ValueError:
        return None
    if not math.isfinite(rate) or rate <= 0:
        return None
    return rate


def elapsed_seconds(state: PanelState, now: int) -> float:
    live = 0.0
    if state.is_running and state.running_since is not None:
        live = max(0.0, (now - state.running_since) / 1000)
    return state.accumulated_seconds + live


def compute_earnings(state: PanelState, now: int) -> float:
    return elapsed_seconds(state, now) * dollars_per_second(state.hourly_rate)


class EarningsTimer:
    def __init__(self, state: PanelState | None = None, clock: Callable[[], int] = now_ms, tz: str | None = None) -> None:
        self.state = state.model_copy() if state is not None else PanelState()
        self._clock = clock
        self._tz = tz

    @property
    def is_running(self) -> bool:
        return self.state.is_running

    def elapsed(self) -> float:
        return elapsed_seconds(self.state, self._clock())

    def earnings(self) -> float:
        return compute_earnings(self.state, self._clock())

    def start(self, rate_override: float | None = None) -> bool:
        rate = rate_override if rate_override is not None else self.state.hourly_rate
        if not rate or rate <= 0:
            return False
        now = self._clock()
        if self.state.start_time is None:
            self.state.start_time = now
        if self.state.running_since is None:
            self.state.running_since = now
        self.state.is_running = True
        self.state.end_time = None
        return True

    def pause(self) -> bool:
        if not self.state.is_running:
            return False
        now = self._clock()
        if self.state.running_since is not None:
            self.state.accumulated_seconds += max(0.0, (now - self.state.running_since) / 1000)
            self.state.running_since = None
        self.state.is_running = False
        self.state.end_time = now
        return True

    def toggle(self) -> bool:
        if self.state.is_running:
            return self.pause()
        return self.start()

    def set_rate(self, text: str | float | None) -> bool:
        """Apply a newly entered rate; restarts the count from zero."""
        rate = parse_rate(text)
        if rate is None:
            return False
        now = self._clock()
        self.state.hourly_rate = rate
        self.state.accumulated_seconds = 0.0
        self.state.start_time = now
        self.state.end_time = None
        self.state.running_since = None
        return self.start(rate)

    def reset_counter(self) -> None:
        now = self._clock()
        self.state.start_time = now
        self.state.accumulated_seconds = 0.0
        self.state.end_time = None
        self.state.running_since = now if self.state.is_running else None

    def edit_times(self, start_text: str, end_text: str | None = None) -> bool:
        """Apply manually edited start/end times.

        An end earlier than the start rolls forward by whole days. Returns
        ``False`` and leaves the state alone when the start cannot be parsed.
        """

        now = self._clock()
        base_start = self.state.start_time if self.state.start_time is not None else now
        new_start = parse_user_datetime(start_text, base_start, self._tz)
        if new_start is None:
            return False
        new_end = None
        if end_text:
            base_end = self.state.end_time if self.state.end_time is not None else base_start
            new_end = parse_user_datetime(end_text, base_end, self._tz)
        if new_end is not None and new_end < new_start:
            days = math.ceil((new_start - new_end) / ONE_DAY_MS)
            new_end += days * ONE_DAY_MS

        self.state.start_time = new_start
        self.state.end_time = new_end

        if self.state.is_running:
            if new_end is not None:
                self.state.accumulated_seconds = max(0.0, (new_end - new_start) / 1000)
                self.state.is_running = False
                self.state.running_since = None
            else:
                self.state.accumulated_seconds = max(0.0, (now - new_start) / 1000)
                self.state.running_since = now
        else:
            effective_end = new_end if new_end is not None else now
            self.state.accumulated_seconds = max(0.0, (effective_end - new_start) / 1000)
        return True

    def editor_defaults(self) -> tuple[str, str]:
        """Initial text for the start/end inputs of the time editor."""
        start = self.state.start_time if self.state.start_time is not None else self._clock()
        end = format_date_time(self.state.end_time, self._tz) if self.state.end_time else ""
        return format_date_time(start, self._tz), end

    def time_display(self) -> str | None:
        """Start time alone while running, ``start - end`` once stopped."""
        start = self.state.start_time
        if not start:
            return None
        if self.state.is_running:
            show_date = format_date_only(start, self._tz) != format_date_only(self._clock(), self._tz)
            return (format_date_time if show_date else format_time_only)(start, self._tz)
        end = self.state.end_time
        show_date = bool(end) and format_date_only(start, self._tz) != format_date_only(end, self._tz)
        fmt = format_date_time if show_date else format_time_only
        left = fmt(start, self._tz)
        right = fmt(end, self._tz) if end else "now"
        return f"{left} - {right}"


def advance_running_panels(panels: Iterable[dict[str, Any]], since_ms: int | None, now: int) -> list[dict[str, Any]]:
    """Credit running panels with the time that passed while their canvas was closed."""

    delta = max(0.0, (now - (since_ms if since_ms is not None else now)) / 1000)
    adjusted: list[dict[str, Any]] = []
    for panel in panels:
        state = panel.get("state")
        if not state or not state.get("isRunning"):
            adjusted.append(panel)
            continue
        new_state = dict(state)
        accumulated = float(state.get("accumulatedSeconds") or 0)
        running_since = state.get("runningSince")
        if running_since is not None:
            # the live segment already covers the closed period; fold it in
            accumulated += max(0.0, (now - running_since) / 1000)
        else:
            accumulated += delta
        new_state["accumulatedSeconds"] = accumulated
        new_state["runningSince"] = now
        adjusted.append({**panel, "state": new_state})
    return adjusted
