"""Appointment booking and lifecycle API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.api import deps
from petshop.core.errors import EngineError
from petshop.schemas.appointment import (
    ActionResultRead,
    AppointmentCancel,
    AppointmentCreate,
    AppointmentRead,
    AppointmentReschedule,
    ChecklistUpdate,
    DiscountRequest,
    PaymentRequest,
)
from petshop.services import appointment_actions, appointment_service

router = APIRouter()

SessionDep = Annotated[AsyncSession, Depends(deps.get_db_session)]
AccountDep = Annotated[uuid.UUID, Depends(deps.get_account_id)]


def _respond(result: appointment_actions.ActionResult) -> ActionResultRead:
    return ActionResultRead.model_validate(deps.ensure_success(result))


@router.post(
    "",
    response_model=ActionResultRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def create_appointment(
    payload: AppointmentCreate,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.create_appointment(
        session,
        account_id=account_id,
        pet_id=payload.pet_id,
        service_id=payload.service_id,
        scheduled_at=payload.scheduled_at,
        check_in_date=payload.check_in_date,
        check_out_date=payload.check_out_date,
        notes=payload.notes,
        created_by_staff=payload.created_by_staff,
        use_package=payload.use_package,
    )
    return _respond(result)


@router.get("/{appointment_id}", response_model=AppointmentRead)
async def get_appointment(
    appointment_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> AppointmentRead:
    try:
        appointment = await appointment_service.get_appointment(
            session, account_id=account_id, appointment_id=appointment_id
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return AppointmentRead.model_validate(appointment)


@router.post("/{appointment_id}/confirm", response_model=ActionResultRead)
async def confirm_appointment(
    appointment_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.confirm_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    return _respond(result)


@router.post("/{appointment_id}/check-in", response_model=ActionResultRead)
async def check_in(
    appointment_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.check_in(
        session, account_id=account_id, appointment_id=appointment_id
    )
    return _respond(result)


@router.post("/{appointment_id}/check-out", response_model=ActionResultRead)
async def check_out(
    appointment_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.check_out(
        session, account_id=account_id, appointment_id=appointment_id
    )
    return _respond(result)


@router.put("/{appointment_id}/checklist", response_model=ActionResultRead)
async def update_checklist(
    appointment_id: uuid.UUID,
    payload: ChecklistUpdate,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.update_checklist(
        session,
        account_id=account_id,
        appointment_id=appointment_id,
        items=[item.model_dump() for item in payload.items],
    )
    return _respond(result)


@router.post("/{appointment_id}/cancel", response_model=ActionResultRead)
async def cancel_appointment(
    appointment_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
    payload: AppointmentCancel | None = None,
) -> ActionResultRead:
    result = await appointment_actions.cancel_appointment(
        session,
        account_id=account_id,
        appointment_id=appointment_id,
        reason=payload.reason if payload else None,
    )
    return _respond(result)


@router.post("/{appointment_id}/no-show", response_model=ActionResultRead)
async def mark_no_show(
    appointment_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.mark_no_show(
        session, account_id=account_id, appointment_id=appointment_id
    )
    return _respond(result)


@router.post("/{appointment_id}/reschedule", response_model=ActionResultRead)
async def reschedule_appointment(
    appointment_id: uuid.UUID,
    payload: AppointmentReschedule,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.reschedule_appointment(
        session,
        account_id=account_id,
        appointment_id=appointment_id,
        scheduled_at=payload.scheduled_at,
        check_in_date=payload.check_in_date,
        check_out_date=payload.check_out_date,
    )
    return _respond(result)


@router.post("/{appointment_id}/pay", response_model=ActionResultRead)
async def mark_paid(
    appointment_id: uuid.UUID,
    payload: PaymentRequest,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.mark_paid(
        session,
        account_id=account_id,
        appointment_id=appointment_id,
        method=payload.method,
    )
    return _respond(result)


@router.post("/{appointment_id}/unpay", response_model=ActionResultRead)
async def mark_unpaid(
    appointment_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.mark_unpaid(
        session, account_id=account_id, appointment_id=appointment_id
    )
    return _respond(result)


@router.post("/{appointment_id}/discount", response_model=ActionResultRead)
async def apply_discount(
    appointment_id: uuid.UUID,
    payload: DiscountRequest,
    session: SessionDep,
    account_id: AccountDep,
) -> ActionResultRead:
    result = await appointment_actions.apply_discount(
        session,
        account_id=account_id,
        appointment_id=appointment_id,
        percent=payload.percent,
    )
    return _respond(result)
