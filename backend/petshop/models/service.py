"""Service catalog, scheduling rules and pricing matrix models."""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, Enum, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petshop.db.base import Base
from petshop.models.mixins import TimestampMixin
from petshop.models.pet import PetSize

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from petshop.models import Account, Appointment


class ServiceCategory(str, enum.Enum):
    """Business area a service belongs to."""

    BANHO = "banho"
    TOSA = "tosa"
    BANHO_TOSA = "banho_tosa"
    HOTEL = "hotel"
    CRECHE = "creche"
    COMBO = "combo"
    VETERINARIO = "veterinario"
    OUTRO = "outro"


class TargetSpecies(str, enum.Enum):
    """Which species a service is offered for."""

    DOG = "dog"
    CAT = "cat"
    BOTH = "both"


class Service(TimestampMixin, Base):
    """A bookable service with its scheduling and pricing configuration.

    ``scheduling_rules`` holds ``{"day": 0-6, "species": [...]}`` entries
    (0 = Sunday). ``checklist_template`` holds the task labels copied into
    each new appointment.
    """

    __tablename__ = "services"
    __table_args__ = (Index("ix_services_account", "account_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[ServiceCategory] = mapped_column(
        Enum(ServiceCategory), default=ServiceCategory.OUTRO, nullable=False
    )
    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_species: Mapped[TargetSpecies] = mapped_column(
        Enum(TargetSpecies), default=TargetSpecies.BOTH, nullable=False
    )
    scheduling_rules: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, default=list, nullable=False
    )
    checklist_template: Mapped[list[str]] = mapped_column(
        JSON, default=list, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    account: Mapped["Account"] = relationship("Account", back_populates="services")
    pricing_rules: Mapped[list["PricingRule"]] = relationship(
        "PricingRule",
        back_populates="service",
        cascade="all, delete-orphan",
        order_by=lambda: [PricingRule.position, PricingRule.created_at],
    )
    appointments: Mapped[list["Appointment"]] = relationship(
        "Appointment", back_populates="service"
    )


class PricingRule(TimestampMixin, Base):
    """One row of a service's pricing matrix; evaluated in ``position`` order."""

    __tablename__ = "pricing_rules"
    __table_args__ = (Index("ix_pricing_rules_service", "service_id", "position"),)

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    weight_min: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    weight_max: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    size: Mapped[PetSize | None] = mapped_column(Enum(PetSize), nullable=True)
    day_of_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fixed_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    service: Mapped["Service"] = relationship(
        "Service", back_populates="pricing_rules"
    )


__all__ = ["PricingRule", "Service", "ServiceCategory", "TargetSpecies"]
