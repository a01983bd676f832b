"""Result-returning entry points for request handlers.

Every call returns an ``ActionResult`` instead of raising, so a handler can
show ``message`` to the user and trust that a failed call changed nothing.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.core.errors import EngineError, ErrorKind, PersistenceError
from petshop.models import Pet, PaymentMethod, Service
from petshop.services import appointment_service, package_service, scheduling_service
from petshop.services.package_service import PackageUsage
from petshop.services.scheduling_service import SchedulingDecision

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ActionResult:
    success: bool
    message: str
    appointment_id: uuid.UUID | None = None
    error: ErrorKind | None = None


def _failure(exc: EngineError) -> ActionResult:
    if exc.kind is ErrorKind.VALIDATION:
        logger.info("Action rejected: %s", exc.message)
    else:
        logger.warning("Action failed (%s): %s", exc.kind.value, exc.message)
    return ActionResult(success=False, message=exc.user_message, error=exc.kind)


async def _storage_failure(session: AsyncSession) -> PersistenceError:
    # Called from an ``except`` block so the traceback is logged.
    logger.exception("Storage failure in action layer")
    await session.rollback()
    return PersistenceError("Storage failure")


async def _run(
    session: AsyncSession,
    operation: Callable[[], Awaitable[Any]],
    *,
    message: str,
) -> ActionResult:
    try:
        outcome = await operation()
    except EngineError as exc:
        return _failure(exc)
    except SQLAlchemyError:
        return _failure(await _storage_failure(session))
    return ActionResult(
        success=True, message=message, appointment_id=getattr(outcome, "id", None)
    )


async def create_appointment(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    pet_id: uuid.UUID,
    service_id: uuid.UUID,
    scheduled_at: datetime | None = None,
    check_in_date: date | None = None,
    check_out_date: date | None = None,
    notes: str | None = None,
    created_by_staff: bool = False,
    use_package: bool = True,
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.create_appointment(
            session,
            account_id=account_id,
            pet_id=pet_id,
            service_id=service_id,
            scheduled_at=scheduled_at,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
            notes=notes,
            created_by_staff=created_by_staff,
            use_package=use_package,
        ),
        message="Appointment created",
    )


async def confirm_appointment(
    session: AsyncSession, *, account_id: uuid.UUID, appointment_id: uuid.UUID
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.confirm_appointment(
            session, account_id=account_id, appointment_id=appointment_id
        ),
        message="Appointment confirmed",
    )


async def check_in(
    session: AsyncSession, *, account_id: uuid.UUID, appointment_id: uuid.UUID
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.check_in(
            session, account_id=account_id, appointment_id=appointment_id
        ),
        message="Check-in recorded",
    )


async def check_out(
    session: AsyncSession, *, account_id: uuid.UUID, appointment_id: uuid.UUID
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.check_out(
            session, account_id=account_id, appointment_id=appointment_id
        ),
        message="Check-out recorded",
    )


async def update_checklist(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    items: Sequence[Mapping[str, Any]],
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.update_checklist(
            session,
            account_id=account_id,
            appointment_id=appointment_id,
            items=items,
        ),
        message="Checklist updated",
    )


async def cancel_appointment(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    reason: str | None = None,
) -> ActionResult:
    try:
        outcome = await appointment_service.cancel_appointment(
            session,
            account_id=account_id,
            appointment_id=appointment_id,
            reason=reason,
        )
    except EngineError as exc:
        return _failure(exc)
    except SQLAlchemyError:
        return _failure(await _storage_failure(session))
    message = "Appointment deleted" if outcome.deleted else "Appointment cancelled"
    return ActionResult(
        success=True, message=message, appointment_id=outcome.appointment_id
    )


async def mark_no_show(
    session: AsyncSession, *, account_id: uuid.UUID, appointment_id: uuid.UUID
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.mark_no_show(
            session, account_id=account_id, appointment_id=appointment_id
        ),
        message="Appointment marked as no-show",
    )


async def reschedule_appointment(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    scheduled_at: datetime | None = None,
    check_in_date: date | None = None,
    check_out_date: date | None = None,
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.reschedule_appointment(
            session,
            account_id=account_id,
            appointment_id=appointment_id,
            scheduled_at=scheduled_at,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
        ),
        message="Appointment rescheduled",
    )


async def mark_paid(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    method: PaymentMethod | str,
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.mark_paid(
            session,
            account_id=account_id,
            appointment_id=appointment_id,
            method=method,
        ),
        message="Payment recorded",
    )


async def mark_unpaid(
    session: AsyncSession, *, account_id: uuid.UUID, appointment_id: uuid.UUID
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.mark_unpaid(
            session, account_id=account_id, appointment_id=appointment_id
        ),
        message="Payment reversed",
    )


async def apply_discount(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    percent: Any,
) -> ActionResult:
    return await _run(
        session,
        lambda: appointment_service.apply_discount(
            session,
            account_id=account_id,
            appointment_id=appointment_id,
            percent=percent,
        ),
        message="Discount applied",
    )


async def get_package_usage(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    pet_id: uuid.UUID,
    credit_id: uuid.UUID,
) -> PackageUsage | ActionResult:
    try:
        return await package_service.get_package_usage(
            session, account_id=account_id, pet_id=pet_id, credit_id=credit_id
        )
    except EngineError as exc:
        return _failure(exc)
    except SQLAlchemyError:
        return _failure(await _storage_failure(session))


async def validate_scheduling(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    service_id: uuid.UUID,
    pet_id: uuid.UUID,
    target: date | datetime,
) -> SchedulingDecision:
    """Live booking feedback; unknown pet or service yields a rejection."""
    try:
        service = await session.get(Service, service_id)
        pet = await session.get(Pet, pet_id)
    except SQLAlchemyError:
        failure = await _storage_failure(session)
        return SchedulingDecision(allowed=False, reason=failure.user_message)
    if service is None or service.account_id != account_id:
        return SchedulingDecision(allowed=False, reason="Service not found for account")
    if pet is None or pet.account_id != account_id:
        return SchedulingDecision(allowed=False, reason="Pet not found for account")
    return scheduling_service.evaluate_booking(service, pet, target)
