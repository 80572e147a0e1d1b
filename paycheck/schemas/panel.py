"""Pydantic shapes for panels and their timer state.

The browser client speaks camelCase JSON, so every field carries a camelCase
alias while Python code uses snake_case attribute names.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Side = Literal["top", "right", "bottom", "left"]

DEFAULT_PANEL_TITLE = "PayTracker"


class PanelState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_running: bool = Field(False, alias="isRunning")
    hourly_rate: Optional[float] = Field(None, alias="hourlyRate")
    accumulated_seconds: float = Field(0.0, alias="accumulatedSeconds")
    start_time: Optional[int] = Field(None, alias="startTime")
    end_time: Optional[int] = Field(None, alias="endTime")
    running_since: Optional[int] = Field(None, alias="runningSince")
    title: str = DEFAULT_PANEL_TITLE


class PanelConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    x: float = 0.0
    y: float = 0.0
    title: str = DEFAULT_PANEL_TITLE
    state: Optional[PanelState] = None

    def as_layout(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PanelGroup(BaseModel):
    panel_ids: list[str] = Field(alias="panelIds")
    x: float
    y: float
    width: float
    height: float

    model_config = ConfigDict(populate_by_name=True)
