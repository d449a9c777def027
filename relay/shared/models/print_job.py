"""Print job model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relay.shared.models.base import Base
from relay.shared.models.machine import Machine
from relay.shared.models.profile import Profile


class Print(Base):
    __tablename__ = "prints"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("profiles.id"))
    machine_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("machines.id"), default=None
    )
    file_name: Mapped[str | None] = mapped_column(String, default=None)

    completion_estimate: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    canceled: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    owner: Mapped[Profile] = relationship()
    machine: Mapped[Machine | None] = relationship()
