"""Machine event (fault / stop / maintenance) model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relay.shared.models.base import Base
from relay.shared.models.machine import Machine
from relay.shared.models.print_job import Print
from relay.shared.models.profile import Profile


class MachineEvent(Base):
    __tablename__ = "machine_events"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    machine_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("machines.id"))
    print_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("prints.id"), default=None
    )
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id"), default=None
    )

    event_type: Mapped[str] = mapped_column(String)  # FAULT | STOP | MAINTENANCE
    description: Mapped[str | None] = mapped_column(Text, default=None)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    machine: Mapped[Machine] = relationship()
    print_job: Mapped[Print | None] = relationship()
    created_by: Mapped[Profile | None] = relationship()
