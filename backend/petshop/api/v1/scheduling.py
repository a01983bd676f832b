"""Scheduling validation, booking grid and schedule block API."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.api import deps
from petshop.core.errors import EngineError
from petshop.models import Pet, Service
from petshop.schemas.scheduling import (
    ScheduleBlockCreate,
    ScheduleBlockRead,
    SchedulingDecisionRead,
    TimeSlotRead,
)
from petshop.services import appointment_actions, scheduling_service

router = APIRouter()

SessionDep = Annotated[AsyncSession, Depends(deps.get_db_session)]
AccountDep = Annotated[uuid.UUID, Depends(deps.get_account_id)]


@router.get("/validate", response_model=SchedulingDecisionRead)
async def validate_scheduling(
    session: SessionDep,
    account_id: AccountDep,
    service_id: uuid.UUID,
    pet_id: uuid.UUID,
    target: Annotated[date, Query(alias="date")],
) -> SchedulingDecisionRead:
    decision = await appointment_actions.validate_scheduling(
        session,
        account_id=account_id,
        service_id=service_id,
        pet_id=pet_id,
        target=target,
    )
    return SchedulingDecisionRead.model_validate(decision)


@router.get("/slots", response_model=list[TimeSlotRead])
async def list_time_slots(
    session: SessionDep,
    account_id: AccountDep,
    service_id: uuid.UUID,
    pet_id: uuid.UUID,
    day: Annotated[date, Query(alias="date")],
) -> list[TimeSlotRead]:
    service = await session.get(Service, service_id)
    if service is None or service.account_id != account_id:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Service not found")
    pet = await session.get(Pet, pet_id)
    if pet is None or pet.account_id != account_id:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Pet not found")

    blocks = await scheduling_service.list_blocks_for_day(
        session, account_id=account_id, day=day
    )
    slots = scheduling_service.list_time_slots(service, pet, day, blocks)
    return [TimeSlotRead.model_validate(slot) for slot in slots]


@router.get("/blocks", response_model=list[ScheduleBlockRead])
async def list_blocks(
    session: SessionDep,
    account_id: AccountDep,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[ScheduleBlockRead]:
    blocks = await scheduling_service.list_schedule_blocks(
        session, account_id=account_id, start=start, end=end
    )
    return [ScheduleBlockRead.model_validate(block) for block in blocks]


@router.post(
    "/blocks",
    response_model=ScheduleBlockRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_block(
    payload: ScheduleBlockCreate,
    session: SessionDep,
    account_id: AccountDep,
) -> ScheduleBlockRead:
    try:
        block = await scheduling_service.create_schedule_block(
            session,
            account_id=account_id,
            start_at=payload.start_at,
            end_at=payload.end_at,
            reason=payload.reason,
            allowed_species=payload.allowed_species,
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return ScheduleBlockRead.model_validate(block)


@router.delete(
    "/blocks/{block_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_block(
    block_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> Response:
    try:
        await scheduling_service.delete_schedule_block(
            session, account_id=account_id, block_id=block_id
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
