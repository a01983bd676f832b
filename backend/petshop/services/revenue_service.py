"""Revenue summary over settled appointments."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from petshop.core.config import Settings
from petshop.core.errors import ValidationError
from petshop.models import Appointment, AppointmentStatus, PaymentStatus
from petshop.services.pricing_service import effective_price, to_money
from petshop.services.scheduling_service import local_datetime


@dataclass(slots=True)
class RevenueLine:
    """Settled amount for one payment method."""

    method: str
    count: int
    total: Decimal


@dataclass(slots=True)
class RevenueSummary:
    date_from: date
    date_to: date
    count: int
    total: Decimal
    by_method: list[RevenueLine] = field(default_factory=list)


async def summarize_revenue(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    date_from: date,
    date_to: date,
    settings: Settings | None = None,
) -> RevenueSummary:
    """Sum settled amounts of paid appointments scheduled in the day range.

    The amount recorded at settlement is used, so discounts edited after
    payment do not change reported revenue. Cancelled appointments are
    excluded.
    """
    if date_to < date_from:
        raise ValidationError("End date must not be before start date")

    start = local_datetime(date_from, time.min, settings=settings)
    end = local_datetime(date_to + timedelta(days=1), time.min, settings=settings)
    stmt = (
        select(Appointment)
        .where(
            Appointment.account_id == account_id,
            Appointment.payment_status == PaymentStatus.PAID,
            Appointment.scheduled_at >= start,
            Appointment.scheduled_at < end,
        )
        .options(selectinload(Appointment.service))
        .order_by(Appointment.scheduled_at)
    )
    result = await session.execute(stmt)

    totals: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for appointment in result.scalars():
        # Legacy "canceled" rows load as CANCELLED, so filter after loading.
        if appointment.status is AppointmentStatus.CANCELLED:
            continue
        amount = (
            appointment.paid_amount
            if appointment.paid_amount is not None
            else effective_price(appointment)
        )
        method = (
            appointment.payment_method.value
            if appointment.payment_method is not None
            else "unknown"
        )
        totals[method] = totals.get(method, Decimal("0")) + Decimal(str(amount))
        counts[method] = counts.get(method, 0) + 1

    lines = [
        RevenueLine(method=method, count=counts[method], total=to_money(totals[method]))
        for method in sorted(totals)
    ]
    return RevenueSummary(
        date_from=date_from,
        date_to=date_to,
        count=sum(counts.values()),
        total=to_money(sum(totals.values(), Decimal("0"))),
        by_method=lines,
    )
