"""Service package templates and pet-level package credits."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petshop.db.base import Base
from petshop.models.appointment import PaymentMethod
from petshop.models.mixins import TimestampMixin, utcnow

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from petshop.models import Appointment, Pet, Service


class ServicePackage(TimestampMixin, Base):
    """A sellable bundle of service credits."""

    __tablename__ = "service_packages"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    validity_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    items: Mapped[list["PackageItem"]] = relationship(
        "PackageItem", back_populates="package", cascade="all, delete-orphan"
    )


class PackageItem(TimestampMixin, Base):
    """Quantity of one service included in a package."""

    __tablename__ = "package_items"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    package_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("service_packages.id", ondelete="CASCADE"), nullable=False
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    package: Mapped["ServicePackage"] = relationship(
        "ServicePackage", back_populates="items"
    )
    service: Mapped["Service"] = relationship("Service")


class PackageCredit(TimestampMixin, Base):
    """A pet's purchase of ``total_qty`` uses of one service.

    Consumption is never stored here; it is derived from the appointments
    linked through ``Appointment.package_credit_id``.
    """

    __tablename__ = "package_credits"
    __table_args__ = (Index("ix_package_credits_pet_service", "pet_id", "service_id"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="CASCADE"), nullable=False
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"), nullable=False
    )
    package_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("service_packages.id", ondelete="SET NULL"), nullable=True
    )
    renewed_from_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("package_credits.id", ondelete="SET NULL"), nullable=True
    )
    total_qty: Mapped[int] = mapped_column(Integer, nullable=False)
    total_paid: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(PaymentMethod), nullable=True
    )
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    pet: Mapped["Pet"] = relationship("Pet", back_populates="package_credits")
    service: Mapped["Service"] = relationship("Service")
    package: Mapped["ServicePackage | None"] = relationship("ServicePackage")
    appointments: Mapped[list["Appointment"]] = relationship(
        "Appointment", back_populates="package_credit"
    )
