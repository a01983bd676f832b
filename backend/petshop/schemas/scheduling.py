"""Pydantic schemas for scheduling checks, slots and blocks."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SchedulingDecisionRead(BaseModel):
    allowed: bool
    reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class TimeSlotRead(BaseModel):
    start_at: datetime
    available: bool
    reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ScheduleBlockCreate(BaseModel):
    """Payload to block an interval; listed species may still book."""

    start_at: datetime
    end_at: datetime
    reason: str = Field(min_length=1, max_length=255)
    allowed_species: list[Literal["dog", "cat"]] | None = None

    @model_validator(mode="after")
    def _check_range(self) -> "ScheduleBlockCreate":
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        return self


class ScheduleBlockRead(BaseModel):
    id: uuid.UUID
    account_id: uuid.UUID
    start_at: datetime
    end_at: datetime
    reason: str
    allowed_species: list[str] | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
