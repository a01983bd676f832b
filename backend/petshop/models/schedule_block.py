"""Operator-defined unavailable intervals on the agenda."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from petshop.db.base import Base
from petshop.models.mixins import TimestampMixin


class ScheduleBlock(TimestampMixin, Base):
    """A blocked interval; ``allowed_species`` lists species still bookable."""

    __tablename__ = "schedule_blocks"
    __table_args__ = (
        Index("ix_schedule_blocks_account_range", "account_id", "start_at", "end_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    allowed_species: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
