"""Canvas, panel, counter and preference tables.

Panel configuration and canvas snapshot metadata are stored as JSON text blobs,
so the client shape can evolve without schema changes.
"""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


def _load_json(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


class Canvas(Base):
    __tablename__ = "canvases"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Text, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    data = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    user = relationship("User", back_populates="canvases")
    panels = relationship(
        "Panel",
        back_populates="canvas",
        cascade="all, delete-orphan",
        order_by="Panel.id",
    )
    counter = relationship(
        "Counter", back_populates="canvas", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def data_dict(self) -> dict[str, Any]:
        value = _load_json(self.data, {})
        return value if isinstance(value, dict) else {}

    @property
    def last_snapshot_at(self) -> int | None:
        value = self.data_dict.get("lastSnapshotAt")
        return int(value) if isinstance(value, (int, float)) else None


class Panel(Base):
    __tablename__ = "panels"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    canvas_id = Column(Integer, ForeignKey("canvases.id"), nullable=False, index=True)
    config = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)

    canvas = relationship("Canvas", back_populates="panels")

    @property
    def config_dict(self) -> dict[str, Any]:
        value = _load_json(self.config, {})
        return value if isinstance(value, dict) else {}


class Counter(Base):
    __tablename__ = "paycheck_counters"
    __allow_unmapped__ = True

    canvas_id = Column(Integer, ForeignKey("canvases.id"), primary_key=True)
    value = Column(Float, nullable=False, default=0.0)

    canvas = relationship("Canvas", back_populates="counter")


class Preferences(Base):
    __tablename__ = "preferences"
    __allow_unmapped__ = True

    user_id = Column(Text, ForeignKey("users.id"), primary_key=True)
    settings = Column(Text, nullable=False, default="{}")
    updated_at = Column(Text, nullable=False)

    user = relationship("User", back_populates="preferences")

    @property
    def settings_dict(self) -> dict[str, Any]:
        value = _load_json(self.settings, {})
        return value if isinstance(value, dict) else {}


__all__ = ["Canvas", "Panel", "Counter", "Preferences"]
