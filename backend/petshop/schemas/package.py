"""Pydantic schemas for package credits."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from petshop.models.appointment import PaymentMethod


class PackageSlotRead(BaseModel):
    index: int
    status: str
    appointment_id: uuid.UUID | None = None
    scheduled_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PackageUsageRead(BaseModel):
    """Derived usage of one package credit."""

    credit_id: uuid.UUID
    pet_id: uuid.UUID
    service_id: uuid.UUID
    total_qty: int
    used_qty: int
    scheduled_qty: int
    available_qty: int
    remaining_qty: int
    expired: bool
    expires_at: datetime | None = None
    is_active: bool
    overflow_qty: int = 0
    slots: list[PackageSlotRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class PackageSale(BaseModel):
    package_id: uuid.UUID
    total_paid: Decimal | None = Field(default=None, ge=Decimal("0"))
    payment_method: PaymentMethod | None = None


class PackageRenewal(BaseModel):
    total_paid: Decimal | None = Field(default=None, ge=Decimal("0"))
    payment_method: PaymentMethod | None = None


class PackageCreditRead(BaseModel):
    id: uuid.UUID
    account_id: uuid.UUID
    pet_id: uuid.UUID
    service_id: uuid.UUID
    package_id: uuid.UUID | None = None
    renewed_from_id: uuid.UUID | None = None
    total_qty: int
    total_paid: Decimal | None = None
    payment_method: PaymentMethod | None = None
    purchased_at: datetime
    expires_at: datetime | None = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
