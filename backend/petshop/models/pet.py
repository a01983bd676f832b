"""Pet profile model."""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petshop.db.base import Base
from petshop.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from petshop.models import Account, Appointment, PackageCredit


class PetSpecies(str, enum.Enum):
    """Species recorded on a pet profile."""

    DOG = "dog"
    CAT = "cat"
    OTHER = "other"


class PetSize(str, enum.Enum):
    """Size classes used by the pricing matrix."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    GIANT = "giant"


class Pet(TimestampMixin, Base):
    """A pet enrolled with the shop. Never hard-deleted while booked."""

    __tablename__ = "pets"
    __table_args__ = (Index("ix_pets_account", "account_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    species: Mapped[PetSpecies] = mapped_column(Enum(PetSpecies), nullable=False)
    breed: Mapped[str | None] = mapped_column(String(120))
    size: Mapped[PetSize | None] = mapped_column(Enum(PetSize), nullable=True)
    weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    perfume_allowed: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    accessories_allowed: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    account: Mapped["Account"] = relationship("Account", back_populates="pets")
    appointments: Mapped[list["Appointment"]] = relationship(
        "Appointment", back_populates="pet"
    )
    package_credits: Mapped[list["PackageCredit"]] = relationship(
        "PackageCredit", back_populates="pet"
    )
