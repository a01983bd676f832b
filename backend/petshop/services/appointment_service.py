"""Booking and lifecycle management for appointments."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from petshop.core.config import Settings
from petshop.core.errors import NotFoundError, StateError, ValidationError
from petshop.db.session import commit_or_raise, flush_or_raise
from petshop.models import (
    Appointment,
    AppointmentStatus,
    PaymentMethod,
    PaymentStatus,
    Pet,
    Service,
)
from petshop.models.mixins import utcnow
from petshop.services import package_service, scheduling_service
from petshop.services.audit_service import record_event
from petshop.services.pricing_service import (
    apply_discount_percent,
    effective_price,
    quote_stay,
    resolve_price,
    to_money,
)

logger = logging.getLogger(__name__)

STAY_CHECK_IN_TIME = time(hour=12)

_ALLOWED_STATUS_TRANSITIONS: dict[AppointmentStatus, set[AppointmentStatus]] = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.IN_PROGRESS: {
        AppointmentStatus.DONE,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.DONE: set(),
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.NO_SHOW: set(),
}

_RESCHEDULABLE = {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}

_TEXT_KEYS = ("text", "label", "item")
_COMPLETED_KEYS = ("completed", "checked", "done")


@dataclass(slots=True)
class CancellationOutcome:
    """Result of a cancellation; ``deleted`` when the row was removed."""

    appointment_id: uuid.UUID
    deleted: bool
    appointment: Appointment | None = None


def _status(appointment: Appointment) -> AppointmentStatus:
    return AppointmentStatus(appointment.status)


def _transition(appointment: Appointment, new_status: AppointmentStatus) -> None:
    current = _status(appointment)
    if new_status not in _ALLOWED_STATUS_TRANSITIONS[current]:
        raise StateError(
            f"cannot move appointment from {current.value} to {new_status.value}"
        )
    appointment.status = new_status


async def _get_pet(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    pet_id: uuid.UUID,
) -> Pet:
    pet = await session.get(Pet, pet_id)
    if pet is None or pet.account_id != account_id:
        raise NotFoundError("Pet not found for account")
    return pet


async def _get_service(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    service_id: uuid.UUID,
) -> Service:
    service = await session.get(
        Service, service_id, options=[selectinload(Service.pricing_rules)]
    )
    if service is None or service.account_id != account_id:
        raise NotFoundError("Service not found for account")
    if service.is_active is False:
        raise ValidationError("Service is not available")
    return service


async def get_appointment(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> Appointment:
    appointment = await session.get(
        Appointment,
        appointment_id,
        options=[
            selectinload(Appointment.pet),
            selectinload(Appointment.service).selectinload(Service.pricing_rules),
        ],
    )
    if appointment is None or appointment.account_id != account_id:
        raise NotFoundError("Appointment not found for account")
    return appointment


def build_checklist(template: Sequence[Any] | None) -> list[dict[str, Any]]:
    """Fresh per-appointment copy of a service's checklist template."""
    checklist: list[dict[str, Any]] = []
    for entry in template or ():
        if isinstance(entry, Mapping):
            text = next(
                (str(entry[key]) for key in _TEXT_KEYS if entry.get(key)), ""
            )
        else:
            text = str(entry)
        if text.strip():
            checklist.append(
                {"text": text.strip(), "completed": False, "completed_at": None}
            )
    return checklist


def _ensure_bookable(
    service: Service,
    pet: Pet,
    target: date | datetime,
    *,
    settings: Settings | None,
) -> None:
    decision = scheduling_service.evaluate_booking(
        service, pet, target, settings=settings
    )
    if not decision.allowed:
        logger.info(
            "Booking rejected for pet %s on service %s: %s",
            pet.id,
            service.id,
            decision.reason,
        )
        raise ValidationError(decision.reason or "Booking not allowed")


async def _ensure_not_blocked(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    service: Service,
    pet: Pet,
    start_at: datetime,
    settings: Settings | None,
) -> None:
    if scheduling_service.is_block_exempt(service):
        return
    end_at = start_at + scheduling_service.service_duration(service, settings=settings)
    blocks = await scheduling_service.list_schedule_blocks(
        session, account_id=account_id, start=start_at, end=end_at
    )
    block = scheduling_service.find_blocking_block(
        blocks, start=start_at, end=end_at, species=pet.species
    )
    if block is not None:
        raise ValidationError(f"Selected time is blocked: {block.reason}")


def _validate_stay(check_in_date: date | None, check_out_date: date | None) -> None:
    if check_in_date is None or check_out_date is None:
        raise ValidationError("Both check-in and check-out dates are required")
    if check_out_date <= check_in_date:
        raise ValidationError("Check-out date must be after check-in date")


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
    settings: Settings | None = None,
) -> Appointment:
    is_stay = check_in_date is not None or check_out_date is not None
    if is_stay:
        _validate_stay(check_in_date, check_out_date)
    elif scheduled_at is None:
        raise ValidationError(
            "Provide a scheduled time or a check-in/check-out date range"
        )

    pet = await _get_pet(session, account_id=account_id, pet_id=pet_id)
    if pet.is_active is False:
        raise ValidationError("Pet is not active")
    service = await _get_service(session, account_id=account_id, service_id=service_id)

    if is_stay:
        assert check_in_date is not None and check_out_date is not None
        _ensure_bookable(service, pet, check_in_date, settings=settings)
        start_at = scheduling_service.local_datetime(
            check_in_date, STAY_CHECK_IN_TIME, settings=settings
        )
        price = quote_stay(
            service, pet, check_in_date, check_out_date, settings=settings
        ).total
    else:
        assert scheduled_at is not None
        start_at = scheduling_service.to_utc(scheduled_at, settings=settings)
        _ensure_bookable(service, pet, start_at, settings=settings)
        await _ensure_not_blocked(
            session,
            account_id=account_id,
            service=service,
            pet=pet,
            start_at=start_at,
            settings=settings,
        )
        price = resolve_price(service, pet, start_at, settings=settings)

    credit = None
    if use_package:
        # The credit must still be valid when the appointment takes place.
        credit = await package_service.find_available_credit(
            session,
            account_id=account_id,
            pet_id=pet.id,
            service_id=service.id,
            now=max(utcnow(), start_at),
        )

    appointment = Appointment(
        account_id=account_id,
        pet=pet,
        service=service,
        scheduled_at=start_at,
        check_in_date=check_in_date,
        check_out_date=check_out_date,
        status=(
            AppointmentStatus.CONFIRMED
            if created_by_staff
            else AppointmentStatus.PENDING
        ),
        checklist=build_checklist(service.checklist_template),
        notes=notes,
        calculated_price=price,
        payment_status=PaymentStatus.PENDING,
    )
    if credit is not None:
        appointment.package_credit = credit
        appointment.payment_status = PaymentStatus.PAID
        appointment.payment_method = PaymentMethod.CREDIT_PACKAGE
        appointment.paid_at = utcnow()
        appointment.paid_amount = Decimal("0.00")
    session.add(appointment)
    await flush_or_raise(session, operation="create appointment")

    record_event(
        session,
        event_type="appointment.created",
        account_id=account_id,
        appointment_id=appointment.id,
        description=f"{service.name} booked for {pet.name}",
        payload={
            "calculated_price": str(price),
            "package_credit_id": str(credit.id) if credit is not None else None,
        },
    )
    await commit_or_raise(session, operation="create appointment")
    logger.info(
        "Appointment %s created for pet %s (service %s, price %s%s)",
        appointment.id,
        pet.id,
        service.id,
        price,
        ", package credit" if credit is not None else "",
    )
    return appointment


async def confirm_appointment(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> Appointment:
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    if _status(appointment) is not AppointmentStatus.PENDING:
        raise StateError(f"cannot confirm a {_status(appointment).value} appointment")
    _transition(appointment, AppointmentStatus.CONFIRMED)
    record_event(
        session,
        event_type="appointment.confirmed",
        account_id=account_id,
        appointment_id=appointment.id,
    )
    await commit_or_raise(session, operation="confirm appointment")
    logger.info("Appointment %s confirmed", appointment.id)
    return appointment


async def check_in(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> Appointment:
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    if appointment.actual_check_in is not None:
        raise StateError("appointment already checked in")
    status = _status(appointment)
    if status.is_terminal:
        raise StateError(f"cannot check in a {status.value} appointment")

    appointment.actual_check_in = utcnow()
    if status is not AppointmentStatus.IN_PROGRESS:
        _transition(appointment, AppointmentStatus.IN_PROGRESS)
    record_event(
        session,
        event_type="appointment.checked_in",
        account_id=account_id,
        appointment_id=appointment.id,
    )
    await commit_or_raise(session, operation="check in")
    logger.info("Appointment %s checked in", appointment.id)
    return appointment


async def check_out(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> Appointment:
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    if appointment.actual_check_in is None:
        raise StateError("appointment has not been checked in")
    if appointment.actual_check_out is not None:
        raise StateError("appointment already checked out")

    _transition(appointment, AppointmentStatus.DONE)
    appointment.actual_check_out = utcnow()
    record_event(
        session,
        event_type="appointment.checked_out",
        account_id=account_id,
        appointment_id=appointment.id,
    )
    await commit_or_raise(session, operation="check out")
    logger.info("Appointment %s checked out", appointment.id)
    return appointment


def _item_text(raw: Mapping[str, Any]) -> str:
    for key in _TEXT_KEYS:
        value = raw.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _item_completed(raw: Mapping[str, Any]) -> bool:
    for key in _COMPLETED_KEYS:
        if key in raw and raw[key] is not None:
            return bool(raw[key])
    return False


def _completed_stamp(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat()
    if value:
        return str(value)
    return None


def merge_checklist(
    previous: Sequence[Mapping[str, Any]] | None,
    items: Sequence[Mapping[str, Any]],
    *,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Replacement checklist with ``completed_at`` kept, stamped or cleared.

    An item that was already completed under the same text keeps its
    original timestamp; a newly completed item is stamped with ``now``.
    """
    stamp = (now or utcnow()).isoformat()
    earlier: dict[str, list[str | None]] = {}
    for raw in previous or ():
        if _item_completed(raw):
            earlier.setdefault(_item_text(raw), []).append(
                _completed_stamp(raw.get("completed_at"))
            )

    merged: list[dict[str, Any]] = []
    for raw in items:
        text = _item_text(raw)
        if not text:
            raise ValidationError("Checklist items need a description")
        completed = _item_completed(raw)
        completed_at: str | None = None
        if completed:
            kept = earlier.get(text)
            if kept:
                completed_at = kept.pop(0) or stamp
            else:
                completed_at = _completed_stamp(raw.get("completed_at")) or stamp
        merged.append(
            {"text": text, "completed": completed, "completed_at": completed_at}
        )
    return merged


async def update_checklist(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    items: Sequence[Mapping[str, Any]],
) -> Appointment:
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    if _status(appointment) is AppointmentStatus.CANCELLED:
        raise StateError("checklist of a cancelled appointment cannot be edited")

    appointment.checklist = merge_checklist(appointment.checklist, items)
    done = sum(1 for item in appointment.checklist if item["completed"])
    record_event(
        session,
        event_type="appointment.checklist_updated",
        account_id=account_id,
        appointment_id=appointment.id,
        payload={"completed": done, "total": len(appointment.checklist)},
    )
    await commit_or_raise(session, operation="update checklist")
    logger.info(
        "Appointment %s checklist updated (%d/%d done)",
        appointment.id,
        done,
        len(appointment.checklist),
    )
    return appointment


async def cancel_appointment(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    reason: str | None = None,
) -> CancellationOutcome:
    """Remove a never-started appointment, or cancel a started one in place."""
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    status = _status(appointment)
    if status.is_terminal:
        raise StateError(f"cannot cancel a {status.value} appointment")

    if appointment.actual_check_in is None:
        record_event(
            session,
            event_type="appointment.deleted",
            account_id=account_id,
            description=reason,
            payload={"appointment_id": str(appointment.id), "status": status.value},
        )
        await session.delete(appointment)
        await commit_or_raise(session, operation="delete appointment")
        logger.info("Appointment %s deleted before start", appointment_id)
        return CancellationOutcome(appointment_id=appointment_id, deleted=True)

    _transition(appointment, AppointmentStatus.CANCELLED)
    if reason:
        note = appointment.notes or ""
        separator = "\n" if note else ""
        appointment.notes = f"{note}{separator}Cancelled: {reason}"
    record_event(
        session,
        event_type="appointment.cancelled",
        account_id=account_id,
        appointment_id=appointment.id,
        description=reason,
    )
    await commit_or_raise(session, operation="cancel appointment")
    logger.info("Appointment %s cancelled after check-in", appointment.id)
    return CancellationOutcome(
        appointment_id=appointment.id, deleted=False, appointment=appointment
    )


async def mark_no_show(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> Appointment:
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    _transition(appointment, AppointmentStatus.NO_SHOW)
    record_event(
        session,
        event_type="appointment.no_show",
        account_id=account_id,
        appointment_id=appointment.id,
    )
    await commit_or_raise(session, operation="mark no-show")
    logger.info("Appointment %s marked as no-show", appointment.id)
    return appointment


async def reschedule_appointment(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    scheduled_at: datetime | None = None,
    check_in_date: date | None = None,
    check_out_date: date | None = None,
    settings: Settings | None = None,
) -> Appointment:
    """Move an appointment that has not started yet, re-validating and re-pricing."""
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    status = _status(appointment)
    if status not in _RESCHEDULABLE or appointment.actual_check_in is not None:
        raise StateError(f"cannot reschedule a {status.value} appointment")

    service = appointment.service
    pet = appointment.pet
    if check_in_date is not None or check_out_date is not None:
        _validate_stay(check_in_date, check_out_date)
        assert check_in_date is not None and check_out_date is not None
        _ensure_bookable(service, pet, check_in_date, settings=settings)
        start_at = scheduling_service.local_datetime(
            check_in_date, STAY_CHECK_IN_TIME, settings=settings
        )
        price = quote_stay(
            service, pet, check_in_date, check_out_date, settings=settings
        ).total
    elif scheduled_at is not None:
        if appointment.is_stay:
            raise ValidationError("Stays are rescheduled with new check-in/check-out dates")
        start_at = scheduling_service.to_utc(scheduled_at, settings=settings)
        _ensure_bookable(service, pet, start_at, settings=settings)
        await _ensure_not_blocked(
            session,
            account_id=account_id,
            service=service,
            pet=pet,
            start_at=start_at,
            settings=settings,
        )
        price = resolve_price(service, pet, start_at, settings=settings)
    else:
        raise ValidationError(
            "Provide a scheduled time or a check-in/check-out date range"
        )

    previous = appointment.scheduled_at
    appointment.scheduled_at = start_at
    appointment.check_in_date = check_in_date
    appointment.check_out_date = check_out_date
    appointment.calculated_price = price
    if appointment.discount_percent is not None:
        appointment.final_price = apply_discount_percent(
            price, appointment.discount_percent
        )
    record_event(
        session,
        event_type="appointment.rescheduled",
        account_id=account_id,
        appointment_id=appointment.id,
        payload={
            "previous": previous.isoformat() if previous else None,
            "scheduled_at": start_at.isoformat(),
        },
    )
    await commit_or_raise(session, operation="reschedule appointment")
    logger.info("Appointment %s rescheduled to %s", appointment.id, start_at)
    return appointment


def _parse_method(method: PaymentMethod | str) -> PaymentMethod:
    try:
        return PaymentMethod(method)
    except ValueError as exc:
        raise ValidationError(f"Unknown payment method: {method}") from exc


async def mark_paid(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    method: PaymentMethod | str,
) -> Appointment:
    payment_method = _parse_method(method)
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    if _status(appointment) is AppointmentStatus.CANCELLED:
        raise StateError("cancelled appointments cannot be settled")
    if appointment.payment_status is PaymentStatus.PAID:
        raise StateError("appointment is already paid")
    if (
        payment_method is PaymentMethod.CREDIT_PACKAGE
        and appointment.package_credit_id is None
    ):
        raise ValidationError("Package payment requires a linked package credit")

    appointment.payment_status = PaymentStatus.PAID
    appointment.payment_method = payment_method
    appointment.paid_at = utcnow()
    appointment.paid_amount = effective_price(appointment)
    record_event(
        session,
        event_type="appointment.paid",
        account_id=account_id,
        appointment_id=appointment.id,
        payload={
            "method": payment_method.value,
            "amount": str(appointment.paid_amount),
        },
    )
    await commit_or_raise(session, operation="mark paid")
    logger.info(
        "Appointment %s paid with %s (%s)",
        appointment.id,
        payment_method.value,
        appointment.paid_amount,
    )
    return appointment


async def mark_unpaid(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> Appointment:
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    if appointment.payment_status is not PaymentStatus.PAID:
        raise StateError("appointment is not paid")

    previous_method = appointment.payment_method
    released_credit_id = appointment.package_credit_id
    appointment.payment_status = PaymentStatus.PENDING
    appointment.payment_method = None
    appointment.paid_at = None
    appointment.paid_amount = None
    # Reversing a package payment gives the slot back to the credit.
    if released_credit_id is not None:
        appointment.package_credit = None
        appointment.package_credit_id = None
    record_event(
        session,
        event_type="appointment.unpaid",
        account_id=account_id,
        appointment_id=appointment.id,
        payload={
            "previous_method": previous_method.value if previous_method else None,
            "released_package_credit_id": (
                str(released_credit_id) if released_credit_id is not None else None
            ),
        },
    )
    await commit_or_raise(session, operation="mark unpaid")
    logger.info("Appointment %s payment reversed", appointment.id)
    return appointment


def parse_discount_percent(value: Any) -> Decimal:
    """Validate a discount percentage; numbers in [0, 100] only."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("Discount must be a number between 0 and 100")
    try:
        percent = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("Discount must be a number between 0 and 100") from exc
    if not percent.is_finite() or percent < 0 or percent > 100:
        raise ValidationError("Discount must be a number between 0 and 100")
    return percent


async def apply_discount(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID,
    percent: Any,
) -> Appointment:
    discount = parse_discount_percent(percent)
    appointment = await get_appointment(
        session, account_id=account_id, appointment_id=appointment_id
    )
    if _status(appointment) is AppointmentStatus.CANCELLED:
        raise StateError("cancelled appointments cannot be discounted")

    base = appointment.calculated_price
    if base is None:
        base = appointment.service.base_price
    appointment.final_price = apply_discount_percent(base, discount)
    appointment.discount_percent = to_money(discount)
    record_event(
        session,
        event_type="appointment.discounted",
        account_id=account_id,
        appointment_id=appointment.id,
        payload={
            "percent": str(appointment.discount_percent),
            "final_price": str(appointment.final_price),
        },
    )
    await commit_or_raise(session, operation="apply discount")
    logger.info(
        "Appointment %s discounted %s%% to %s",
        appointment.id,
        appointment.discount_percent,
        appointment.final_price,
    )
    return appointment


async def update_pet_preferences(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    pet_id: uuid.UUID,
    perfume_allowed: bool | None = None,
    accessories_allowed: bool | None = None,
) -> Pet:
    pet = await _get_pet(session, account_id=account_id, pet_id=pet_id)
    changes: dict[str, bool] = {}
    if perfume_allowed is not None:
        pet.perfume_allowed = perfume_allowed
        changes["perfume_allowed"] = perfume_allowed
    if accessories_allowed is not None:
        pet.accessories_allowed = accessories_allowed
        changes["accessories_allowed"] = accessories_allowed
    if not changes:
        raise ValidationError("No preference changes provided")

    record_event(
        session,
        event_type="pet.preferences_updated",
        account_id=account_id,
        payload={"pet_id": str(pet.id), **changes},
    )
    await commit_or_raise(session, operation="update pet preferences")
    logger.info("Pet %s preferences updated: %s", pet.id, changes)
    return pet
