"""SQLAlchemy model for registered Pay Check accounts."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class User(Base):
    __tablename__ = "users"
    __allow_unmapped__ = True

    id = Column(Text, primary_key=True)
    email = Column(Text, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    password_hash = Column(Text, nullable=True)
    google_id = Column(Text, nullable=True, index=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    canvases = relationship("Canvas", back_populates="user", cascade="all, delete-orphan")
    preferences = relationship(
        "Preferences", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def to_public(self) -> dict[str, object]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "isVerified": bool(self.is_verified),
        }


__all__ = ["User"]
