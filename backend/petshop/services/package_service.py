"""Package credit accounting, derived from linked appointments."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Final, Iterable, Sequence

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from petshop.core.errors import NotFoundError, StateError, ValidationError
from petshop.db.session import commit_or_raise
from petshop.models import (
    Appointment,
    AppointmentStatus,
    PackageCredit,
    PaymentMethod,
    Pet,
    ServicePackage,
)
from petshop.models.mixins import utcnow
from petshop.services.audit_service import record_event
from petshop.services.pricing_service import to_money
from petshop.services.scheduling_service import from_storage

logger = logging.getLogger(__name__)

SLOT_USED: Final = "used"
SLOT_SCHEDULED: Final = "scheduled"
SLOT_AVAILABLE: Final = "available"


@dataclass(slots=True)
class PackageSlot:
    """One unit of package capacity."""

    index: int
    status: str
    appointment_id: uuid.UUID | None = None
    scheduled_at: datetime | None = None


@dataclass(slots=True)
class PackageUsage:
    """Usage of a package credit computed from its appointments."""

    credit_id: uuid.UUID
    pet_id: uuid.UUID
    service_id: uuid.UUID
    total_qty: int
    used_qty: int
    scheduled_qty: int
    available_qty: int
    remaining_qty: int
    expired: bool
    expires_at: datetime | None
    is_active: bool
    overflow_qty: int = 0
    slots: list[PackageSlot] = field(default_factory=list)

    @property
    def usable(self) -> bool:
        """True when the credit can cover a new booking."""
        return self.is_active and not self.expired and self.available_qty > 0


def _counted(appointments: Iterable[Appointment]) -> list[Appointment]:
    live = [
        appointment
        for appointment in appointments
        if AppointmentStatus(appointment.status) is not AppointmentStatus.CANCELLED
    ]
    return sorted(live, key=lambda appointment: from_storage(appointment.scheduled_at))


def is_expired(credit: PackageCredit, *, now: datetime | None = None) -> bool:
    if credit.expires_at is None:
        return False
    return from_storage(credit.expires_at) <= (now or utcnow())


def compute_usage(
    credit: PackageCredit,
    appointments: Sequence[Appointment],
    *,
    now: datetime | None = None,
) -> PackageUsage:
    """Pair the credit's slots with its appointments in chronological order.

    Slot ``i`` is bound to the ``i``-th live appointment: ``used`` once that
    appointment is done, ``scheduled`` otherwise. Unbound slots are
    ``available``. Appointments past ``total_qty`` are reported as overflow.
    """
    ordered = _counted(appointments)
    total = max(int(credit.total_qty), 0)

    slots: list[PackageSlot] = []
    used = scheduled = 0
    for index in range(total):
        if index < len(ordered):
            appointment = ordered[index]
            if AppointmentStatus(appointment.status) is AppointmentStatus.DONE:
                status = SLOT_USED
                used += 1
            else:
                status = SLOT_SCHEDULED
                scheduled += 1
            slots.append(
                PackageSlot(
                    index=index,
                    status=status,
                    appointment_id=appointment.id,
                    scheduled_at=appointment.scheduled_at,
                )
            )
        else:
            slots.append(PackageSlot(index=index, status=SLOT_AVAILABLE))

    available = total - used - scheduled
    return PackageUsage(
        credit_id=credit.id,
        pet_id=credit.pet_id,
        service_id=credit.service_id,
        total_qty=total,
        used_qty=used,
        scheduled_qty=scheduled,
        available_qty=available,
        remaining_qty=total - (used + scheduled),
        expired=is_expired(credit, now=now),
        expires_at=credit.expires_at,
        is_active=credit.is_active is not False,
        overflow_qty=max(len(ordered) - total, 0),
        slots=slots,
    )


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


async def _get_credit(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    credit_id: uuid.UUID,
) -> PackageCredit:
    credit = await session.get(
        PackageCredit,
        credit_id,
        options=[
            selectinload(PackageCredit.appointments),
            selectinload(PackageCredit.package).selectinload(ServicePackage.items),
        ],
        populate_existing=True,
    )
    if credit is None or credit.account_id != account_id:
        raise NotFoundError("Package credit not found for account")
    return credit


async def get_package_usage(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    pet_id: uuid.UUID,
    credit_id: uuid.UUID,
    now: datetime | None = None,
) -> PackageUsage:
    credit = await _get_credit(session, account_id=account_id, credit_id=credit_id)
    if credit.pet_id != pet_id:
        raise NotFoundError("Package credit not found for pet")
    return compute_usage(credit, credit.appointments, now=now)


async def _list_credits(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    pet_id: uuid.UUID,
    service_id: uuid.UUID | None = None,
) -> list[PackageCredit]:
    stmt: Select[tuple[PackageCredit]] = (
        select(PackageCredit)
        .where(
            PackageCredit.account_id == account_id,
            PackageCredit.pet_id == pet_id,
        )
        .options(selectinload(PackageCredit.appointments))
        .order_by(PackageCredit.purchased_at, PackageCredit.created_at)
        .execution_options(populate_existing=True)
    )
    if service_id is not None:
        stmt = stmt.where(PackageCredit.service_id == service_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_pet_package_usage(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    pet_id: uuid.UUID,
    now: datetime | None = None,
) -> list[PackageUsage]:
    await _get_pet(session, account_id=account_id, pet_id=pet_id)
    credits = await _list_credits(session, account_id=account_id, pet_id=pet_id)
    return [compute_usage(credit, credit.appointments, now=now) for credit in credits]


async def find_available_credit(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    pet_id: uuid.UUID,
    service_id: uuid.UUID,
    now: datetime | None = None,
) -> PackageCredit | None:
    """Oldest active, unexpired credit for the service with a free slot."""
    credits = await _list_credits(
        session, account_id=account_id, pet_id=pet_id, service_id=service_id
    )
    for credit in credits:
        usage = compute_usage(credit, credit.appointments, now=now)
        if usage.usable:
            return credit
    return None


def _expiry(package: ServicePackage | None, *, now: datetime) -> datetime | None:
    if package is None or not package.validity_days:
        return None
    return now + timedelta(days=package.validity_days)


async def sell_package_to_pet(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    pet_id: uuid.UUID,
    package_id: uuid.UUID,
    total_paid: Decimal | None = None,
    payment_method: PaymentMethod | None = None,
) -> list[PackageCredit]:
    """Create one credit per package item for the pet.

    The purchase amount is recorded on the first credit so that summing
    ``total_paid`` over a pet's credits never counts a sale twice.
    """
    pet = await _get_pet(session, account_id=account_id, pet_id=pet_id)
    package = await session.get(
        ServicePackage, package_id, options=[selectinload(ServicePackage.items)]
    )
    if package is None or package.account_id != account_id:
        raise NotFoundError("Package not found for account")
    if not package.is_active:
        raise ValidationError("Package is not available for sale")
    if not package.items:
        raise ValidationError("Package has no services")
    if total_paid is not None and Decimal(str(total_paid)) < 0:
        raise ValidationError("Amount paid cannot be negative")

    now = utcnow()
    paid = to_money(total_paid if total_paid is not None else package.price)
    credits: list[PackageCredit] = []
    for position, item in enumerate(package.items):
        credit = PackageCredit(
            account_id=account_id,
            pet_id=pet.id,
            service_id=item.service_id,
            package_id=package.id,
            total_qty=item.quantity,
            total_paid=paid if position == 0 else Decimal("0.00"),
            payment_method=payment_method,
            purchased_at=now,
            expires_at=_expiry(package, now=now),
            is_active=True,
        )
        session.add(credit)
        credits.append(credit)

    record_event(
        session,
        event_type="package.sold",
        account_id=account_id,
        description=f"Package {package.name} sold to {pet.name}",
        payload={"package_id": str(package.id), "pet_id": str(pet.id)},
    )
    await commit_or_raise(session, operation="sell package")
    logger.info(
        "Package %s sold to pet %s (%d credits)", package.id, pet.id, len(credits)
    )
    return credits


async def renew_package_credit(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    credit_id: uuid.UUID,
    total_paid: Decimal | None = None,
    payment_method: PaymentMethod | None = None,
) -> PackageCredit:
    """Replace a credit with a fresh one that carries over its remaining slots."""
    credit = await _get_credit(session, account_id=account_id, credit_id=credit_id)
    if not credit.is_active:
        raise StateError("Package credit is no longer active")

    usage = compute_usage(credit, credit.appointments)
    carried = max(usage.remaining_qty, 0)

    package = credit.package
    quantity = credit.total_qty
    price = credit.total_paid or Decimal("0")
    if package is not None:
        price = package.price
        for item in package.items:
            if item.service_id == credit.service_id:
                quantity = item.quantity
                break

    now = utcnow()
    renewed = PackageCredit(
        account_id=account_id,
        pet_id=credit.pet_id,
        service_id=credit.service_id,
        package_id=credit.package_id,
        renewed_from_id=credit.id,
        total_qty=quantity + carried,
        total_paid=to_money(total_paid if total_paid is not None else price),
        payment_method=payment_method or credit.payment_method,
        purchased_at=now,
        expires_at=_expiry(package, now=now),
        is_active=True,
    )
    credit.is_active = False
    session.add(renewed)
    record_event(
        session,
        event_type="package.renewed",
        account_id=account_id,
        description=f"Package credit renewed with {carried} carried over",
        payload={"previous_credit_id": str(credit.id), "carried_over": carried},
    )
    await commit_or_raise(session, operation="renew package credit")
    logger.info(
        "Package credit %s renewed as %s (%d carried over)",
        credit.id,
        renewed.id,
        carried,
    )
    return renewed


async def cancel_package_credit(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    credit_id: uuid.UUID,
) -> PackageCredit:
    credit = await _get_credit(session, account_id=account_id, credit_id=credit_id)
    if not credit.is_active:
        raise StateError("Package credit is already inactive")
    credit.is_active = False
    record_event(
        session,
        event_type="package.cancelled",
        account_id=account_id,
        payload={"credit_id": str(credit.id)},
    )
    await commit_or_raise(session, operation="cancel package credit")
    logger.info("Package credit %s cancelled", credit.id)
    return credit
