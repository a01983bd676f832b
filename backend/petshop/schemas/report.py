"""Pydantic schemas for revenue reports."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class RevenueLineRead(BaseModel):
    method: str
    count: int
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class RevenueSummaryRead(BaseModel):
    date_from: date
    date_to: date
    count: int
    total: Decimal
    by_method: list[RevenueLineRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
