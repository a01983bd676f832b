"""Tests for the pricing matrix resolver."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from petshop.models import Appointment, Pet, PetSize, PetSpecies, PricingRule, Service
from petshop.services import pricing_service

SUNDAY = date(2024, 5, 12)
TUESDAY = SUNDAY + timedelta(days=2)
SATURDAY = SUNDAY + timedelta(days=6)


def _service(*rules: PricingRule, base_price: str = "60.00") -> Service:
    return Service(
        name="Banho", base_price=Decimal(base_price), pricing_rules=list(rules)
    )


def _pet(weight: str | None = "8", size: PetSize | None = PetSize.SMALL) -> Pet:
    return Pet(
        name="Rex",
        species=PetSpecies.DOG,
        weight_kg=Decimal(weight) if weight is not None else None,
        size=size,
    )


def test_first_matching_rule_wins() -> None:
    service = _service(
        PricingRule(weight_max=Decimal("10"), fixed_price=Decimal("50")),
        PricingRule(size=PetSize.SMALL, fixed_price=Decimal("40")),
    )

    price = pricing_service.resolve_price(service, _pet("8"), TUESDAY)

    assert price == Decimal("50.00")


def test_falls_back_to_base_price() -> None:
    service = _service(
        PricingRule(weight_min=Decimal("20"), fixed_price=Decimal("90")),
        PricingRule(size=PetSize.GIANT, fixed_price=Decimal("120")),
    )

    assert pricing_service.resolve_price(service, _pet("8"), TUESDAY) == Decimal(
        "60.00"
    )


def test_weight_bounds_are_inclusive() -> None:
    service = _service(
        PricingRule(
            weight_min=Decimal("5"), weight_max=Decimal("10"), fixed_price=Decimal("55")
        )
    )

    assert pricing_service.resolve_price(service, _pet("5"), TUESDAY) == Decimal("55.00")
    assert pricing_service.resolve_price(service, _pet("10"), TUESDAY) == Decimal(
        "55.00"
    )
    assert pricing_service.resolve_price(service, _pet("10.01"), TUESDAY) == Decimal(
        "60.00"
    )


def test_unknown_weight_never_matches_weight_rules() -> None:
    service = _service(
        PricingRule(weight_max=Decimal("10"), fixed_price=Decimal("50")),
        PricingRule(size=PetSize.SMALL, fixed_price=Decimal("40")),
    )

    price = pricing_service.resolve_price(service, _pet(None), TUESDAY)

    assert price == Decimal("40.00")


def test_day_only_rule_matches_every_pet_on_saturday() -> None:
    service = _service(PricingRule(day_of_week=6, fixed_price=Decimal("75")))

    for weight, size in [("2", PetSize.SMALL), ("45", PetSize.GIANT), (None, None)]:
        pet = _pet(weight, size)
        assert pricing_service.resolve_price(service, pet, SATURDAY) == Decimal(
            "75.00"
        )
        assert pricing_service.resolve_price(service, pet, TUESDAY) == Decimal(
            "60.00"
        )


def test_rule_without_constraints_is_catch_all() -> None:
    service = _service(
        PricingRule(size=PetSize.GIANT, fixed_price=Decimal("120")),
        PricingRule(fixed_price=Decimal("65")),
        PricingRule(size=PetSize.SMALL, fixed_price=Decimal("40")),
    )

    assert pricing_service.resolve_price(service, _pet(), TUESDAY) == Decimal("65.00")


def test_inactive_rules_are_skipped() -> None:
    service = _service(
        PricingRule(fixed_price=Decimal("10"), is_active=False),
        PricingRule(size=PetSize.SMALL, fixed_price=Decimal("40")),
    )

    assert pricing_service.resolve_price(service, _pet(), TUESDAY) == Decimal("40.00")


def test_quote_stay_multiplies_by_nights() -> None:
    service = _service(PricingRule(day_of_week=2, fixed_price=Decimal("90")))

    quote = pricing_service.quote_stay(
        service, _pet(), TUESDAY, TUESDAY + timedelta(days=3)
    )

    assert quote.nightly_price == Decimal("90.00")
    assert quote.nights == 3
    assert quote.total == Decimal("270.00")


def test_effective_price_fallback_chain() -> None:
    service = _service(base_price="70.00")
    appointment = Appointment(service=service)
    assert pricing_service.effective_price(appointment) == Decimal("70.00")

    appointment.calculated_price = Decimal("55.00")
    assert pricing_service.effective_price(appointment) == Decimal("55.00")

    appointment.final_price = Decimal("44.00")
    assert pricing_service.effective_price(appointment) == Decimal("44.00")


def test_discount_rounds_half_up() -> None:
    assert pricing_service.apply_discount_percent(
        Decimal("99.99"), Decimal("12.5")
    ) == Decimal("87.49")
