"""Pricing matrix resolution for services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Final

from petshop.core.config import Settings
from petshop.models import Appointment, Pet, PetSize, PricingRule, Service
from petshop.services.scheduling_service import day_of_week

MONEY_PLACES: Final = Decimal("0.01")


@dataclass(slots=True)
class StayQuote:
    """Price of a multi-day stay."""

    nightly_price: Decimal
    nights: int
    total: Decimal


def to_money(value: Decimal | float | str | int) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def _rule_matches(rule: PricingRule, pet: Pet, weekday: int) -> bool:
    weight = Decimal(str(pet.weight_kg)) if pet.weight_kg is not None else None
    if rule.weight_min is not None:
        if weight is None or weight < Decimal(str(rule.weight_min)):
            return False
    if rule.weight_max is not None:
        if weight is None or weight > Decimal(str(rule.weight_max)):
            return False
    if rule.size is not None:
        if pet.size is None or PetSize(pet.size) is not PetSize(rule.size):
            return False
    if rule.day_of_week is not None and rule.day_of_week != weekday:
        return False
    return True


def find_matching_rule(
    service: Service,
    pet: Pet,
    target: date | datetime,
    *,
    settings: Settings | None = None,
) -> PricingRule | None:
    """First active rule, in stored order, whose constraints all hold."""
    weekday = day_of_week(target, settings=settings)
    for rule in service.pricing_rules:
        if rule.is_active is False:
            continue
        if _rule_matches(rule, pet, weekday):
            return rule
    return None


def resolve_price(
    service: Service,
    pet: Pet,
    target: date | datetime,
    *,
    settings: Settings | None = None,
) -> Decimal:
    """Price to charge ``pet`` for ``service`` on the day of ``target``."""
    rule = find_matching_rule(service, pet, target, settings=settings)
    if rule is not None:
        return to_money(rule.fixed_price)
    return to_money(service.base_price)


def count_nights(check_in: date, check_out: date) -> int:
    return max((check_out - check_in).days, 1)


def quote_stay(
    service: Service,
    pet: Pet,
    check_in: date,
    check_out: date,
    *,
    settings: Settings | None = None,
) -> StayQuote:
    """Check-in day price multiplied by the number of nights."""
    nightly = resolve_price(service, pet, check_in, settings=settings)
    nights = count_nights(check_in, check_out)
    return StayQuote(
        nightly_price=nightly, nights=nights, total=to_money(nightly * nights)
    )


def effective_price(appointment: Appointment) -> Decimal:
    """``final_price``, else ``calculated_price``, else the service base price."""
    if appointment.final_price is not None:
        return to_money(appointment.final_price)
    if appointment.calculated_price is not None:
        return to_money(appointment.calculated_price)
    return to_money(appointment.service.base_price)


def apply_discount_percent(base: Decimal, percent: Decimal) -> Decimal:
    return to_money(
        Decimal(str(base)) * (Decimal("1") - Decimal(str(percent)) / Decimal("100"))
    )
