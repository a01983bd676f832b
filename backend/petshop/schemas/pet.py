"""Pydantic schemas for pet preference toggles."""

from __future__ import annotations

import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from petshop.models.pet import PetSize, PetSpecies


class PetPreferencesUpdate(BaseModel):
    perfume_allowed: bool | None = None
    accessories_allowed: bool | None = None


class PetRead(BaseModel):
    id: uuid.UUID
    account_id: uuid.UUID
    name: str
    species: PetSpecies
    breed: str | None = None
    size: PetSize | None = None
    weight_kg: Decimal | None = None
    perfume_allowed: bool
    accessories_allowed: bool
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
