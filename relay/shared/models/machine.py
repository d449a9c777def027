"""Printer and printer-definition models."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relay.shared.models.base import Base


class MachineDef(Base):
    __tablename__ = "machine_defs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    make: Mapped[str] = mapped_column(String)
    model: Mapped[str] = mapped_column(String)


class Machine(Base):
    __tablename__ = "machines"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    nickname: Mapped[str] = mapped_column(String)
    tier: Mapped[int] = mapped_column(Integer, default=1)
    machine_defs_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("machine_defs.id"), default=None
    )

    machine_def: Mapped[MachineDef | None] = relationship()
