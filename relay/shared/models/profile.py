"""Member profile and permission level models."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relay.shared.models.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str | None] = mapped_column(String, default=None)
    # Discord username the member linked on the website
    discord_identity: Mapped[str | None] = mapped_column(String, default=None)

    user_level: Mapped[UserLevel | None] = relationship(back_populates="profile")


class UserLevel(Base):
    __tablename__ = "user_levels"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id"), primary_key=True
    )
    # Packed permission bitfield, see relay.shared.permissions
    level: Mapped[int] = mapped_column(Integer, default=0)

    profile: Mapped[Profile] = relationship(back_populates="user_level")
