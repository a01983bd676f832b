"""Pydantic schemas for appointment endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from petshop.core.errors import ErrorKind
from petshop.models.appointment import (
    AppointmentStatus,
    PaymentMethod,
    PaymentStatus,
)


class ChecklistItem(BaseModel):
    """Checklist entry; older clients send ``label``/``item`` and ``checked``/``done``."""

    text: str = Field(
        min_length=1, validation_alias=AliasChoices("text", "label", "item")
    )
    completed: bool = Field(
        default=False, validation_alias=AliasChoices("completed", "checked", "done")
    )
    completed_at: datetime | None = None


class ChecklistUpdate(BaseModel):
    items: list[ChecklistItem] = Field(default_factory=list)


class AppointmentCreate(BaseModel):
    """Payload to book a single slot or a multi-day stay."""

    pet_id: uuid.UUID
    service_id: uuid.UUID
    scheduled_at: datetime | None = None
    check_in_date: date | None = None
    check_out_date: date | None = None
    notes: str | None = Field(default=None, max_length=1024)
    created_by_staff: bool = False
    use_package: bool = True

    @model_validator(mode="after")
    def _require_schedule(self) -> "AppointmentCreate":
        if self.scheduled_at is None and (
            self.check_in_date is None or self.check_out_date is None
        ):
            raise ValueError(
                "Provide scheduled_at or both check_in_date and check_out_date"
            )
        return self


class AppointmentReschedule(BaseModel):
    scheduled_at: datetime | None = None
    check_in_date: date | None = None
    check_out_date: date | None = None


class AppointmentCancel(BaseModel):
    reason: str | None = None


class PaymentRequest(BaseModel):
    method: PaymentMethod


class DiscountRequest(BaseModel):
    """Percent is validated by the engine so bad input gets its message."""

    percent: Decimal | str


class AppointmentRead(BaseModel):
    """Serialized appointment."""

    id: uuid.UUID
    account_id: uuid.UUID
    pet_id: uuid.UUID
    service_id: uuid.UUID
    package_credit_id: uuid.UUID | None = None
    scheduled_at: datetime
    check_in_date: date | None = None
    check_out_date: date | None = None
    status: AppointmentStatus
    checklist: list[ChecklistItem] = Field(default_factory=list)
    notes: str | None = None
    calculated_price: Decimal | None = None
    final_price: Decimal | None = None
    discount_percent: Decimal | None = None
    payment_status: PaymentStatus
    payment_method: PaymentMethod | None = None
    paid_at: datetime | None = None
    paid_amount: Decimal | None = None
    actual_check_in: datetime | None = None
    actual_check_out: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActionResultRead(BaseModel):
    success: bool
    message: str
    appointment_id: uuid.UUID | None = None
    error: ErrorKind | None = None

    model_config = ConfigDict(from_attributes=True)
