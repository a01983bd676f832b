"""Pet preference toggles used during service execution."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.api import deps
from petshop.core.errors import EngineError
from petshop.schemas.pet import PetPreferencesUpdate, PetRead
from petshop.services import appointment_service

router = APIRouter()


@router.patch("/{pet_id}/preferences", response_model=PetRead)
async def update_pet_preferences(
    pet_id: uuid.UUID,
    payload: PetPreferencesUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    account_id: Annotated[uuid.UUID, Depends(deps.get_account_id)],
) -> PetRead:
    try:
        pet = await appointment_service.update_pet_preferences(
            session,
            account_id=account_id,
            pet_id=pet_id,
            perfume_allowed=payload.perfume_allowed,
            accessories_allowed=payload.accessories_allowed,
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return PetRead.model_validate(pet)
