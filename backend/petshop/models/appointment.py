"""Appointment model and its lifecycle enums."""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Date, DateTime, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from petshop.db.base import Base
from petshop.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from petshop.models import Account, PackageCredit, Pet, Service


class AppointmentStatus(str, enum.Enum):
    """Lifecycle states for appointments.

    Older records spell two of the states differently; ``completed`` and
    ``canceled`` are accepted as aliases of ``done`` and ``cancelled``.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @classmethod
    def _missing_(cls, value: object) -> "AppointmentStatus | None":
        if isinstance(value, str):
            normalized = value.strip().lower()
            alias = _STATUS_ALIASES.get(normalized, normalized)
            for member in cls:
                if member.value == alias:
                    return member
        return None

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


_STATUS_ALIASES: dict[str, str] = {
    "completed": "done",
    "canceled": "cancelled",
}

TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.DONE, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)


class AppointmentStatusType(TypeDecorator):
    """Stores status values as text; legacy spellings load as canonical members."""

    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(20))

    def process_bind_param(self, value: AppointmentStatus | str | None, dialect):
        if value is None:
            return None
        return AppointmentStatus(value).value

    def process_result_value(self, value: str | None, dialect):
        if value is None:
            return None
        return AppointmentStatus(value)


class PaymentStatus(str, enum.Enum):
    """Settlement state of an appointment."""

    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, enum.Enum):
    """Accepted payment methods."""

    CASH = "cash"
    CREDIT = "credit"
    DEBIT = "debit"
    PIX = "pix"
    CREDIT_PACKAGE = "credit_package"


class Appointment(TimestampMixin, Base):
    """A booked service for a pet, single-slot or multi-day stay."""

    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_account_scheduled", "account_id", "scheduled_at"),
        Index("ix_appointments_pet", "pet_id"),
        Index("ix_appointments_package_credit", "package_credit_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="RESTRICT"), nullable=False
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="RESTRICT"), nullable=False
    )
    package_credit_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("package_credits.id", ondelete="SET NULL"), nullable=True
    )
    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    check_in_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    check_out_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    status: Mapped[AppointmentStatus] = mapped_column(
        AppointmentStatusType(),
        default=AppointmentStatus.PENDING,
        nullable=False,
    )
    checklist: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, default=list, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(String(1024))
    calculated_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    final_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    discount_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(PaymentMethod), nullable=True
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    paid_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    actual_check_in: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    actual_check_out: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    account: Mapped["Account"] = relationship("Account")
    pet: Mapped["Pet"] = relationship("Pet", back_populates="appointments")
    service: Mapped["Service"] = relationship(
        "Service", back_populates="appointments"
    )
    package_credit: Mapped["PackageCredit | None"] = relationship(
        "PackageCredit", back_populates="appointments"
    )

    @property
    def is_stay(self) -> bool:
        return self.check_in_date is not None and self.check_out_date is not None


__all__ = [
    "Appointment",
    "AppointmentStatus",
    "PaymentMethod",
    "PaymentStatus",
    "TERMINAL_STATUSES",
]
