"""Account model representing a tenant (one pet-shop organization)."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petshop.db.base import Base
from petshop.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from petshop.models.pet import Pet
    from petshop.models.service import Service


class Account(TimestampMixin, Base):
    """A tenant account; every engine query is filtered by it."""

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    pets: Mapped[list["Pet"]] = relationship(
        "Pet", back_populates="account", cascade="all, delete-orphan"
    )
    services: Mapped[list["Service"]] = relationship(
        "Service", back_populates="account", cascade="all, delete-orphan"
    )
