"""Pydantic schemas for the canvas, preference and earnings endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .panel import PanelConfig, PanelGroup, Side


class CanvasBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = "Canvas 1"
    panels: list[PanelConfig] = Field(default_factory=list)
    last_snapshot_at: Optional[int] = Field(None, alias="lastSnapshotAt")
    counter: Optional[float] = None


class CanvasCreate(CanvasBase):
    pass


class CanvasSave(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    panels: Optional[list[PanelConfig]] = None
    last_snapshot_at: Optional[int] = Field(None, alias="lastSnapshotAt")
    counter: Optional[float] = None


class CanvasOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    panels: list[PanelConfig] = Field(default_factory=list)
    last_snapshot_at: Optional[int] = Field(None, alias="lastSnapshotAt")
    counter: float = 0.0
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


class AddPanelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    panel_id: str = Field(alias="panelId")
    side: Side
    neighbor_id: Optional[str] = Field(None, alias="neighborId")


class MovePanelRequest(BaseModel):
    x: float
    y: float


class GroupsOut(BaseModel):
    success: bool = True
    groups: list[PanelGroup] = Field(default_factory=list)


class PanelEarnings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    panel_id: str = Field(alias="panelId")
    title: str
    is_running: bool = Field(alias="isRunning")
    elapsed_seconds: float = Field(alias="elapsedSeconds")
    earnings: float


class EarningsOut(BaseModel):
    success: bool = True
    panels: list[PanelEarnings] = Field(default_factory=list)
    total: float = 0.0


class PreferencesIn(BaseModel):
    settings: dict[str, Any] = Field(default_factory=dict)


class PreferencesOut(BaseModel):
    success: bool = True
    settings: dict[str, Any] = Field(default_factory=dict)
