"""Tests for the day-of-week x species scheduling rules."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from petshop.core.errors import ValidationError
from petshop.models import Pet, PetSpecies, Service, TargetSpecies
from petshop.services import scheduling_service
from petshop.services.scheduling_service import (
    day_of_week,
    effective_rules,
    evaluate_booking,
    normalize_species,
    set_scheduling_rule,
    validate_scheduling,
)

SAO_PAULO = ZoneInfo("America/Sao_Paulo")
# 2024-05-12 is a Sunday; adding n days gives weekday index n.
SUNDAY = date(2024, 5, 12)
WEDNESDAY = SUNDAY + timedelta(days=3)


def _service(rules: list[dict] | None = None, **kwargs) -> Service:
    return Service(
        name="Banho",
        base_price=Decimal("60.00"),
        scheduling_rules=rules or [],
        **kwargs,
    )


def _pet(species: PetSpecies | str) -> Pet:
    return Pet(name="Pet", species=species)


def test_day_of_week_starts_on_sunday() -> None:
    assert [day_of_week(SUNDAY + timedelta(days=n)) for n in range(7)] == list(
        range(7)
    )


def test_day_of_week_uses_business_calendar_day() -> None:
    # 01:30 UTC on Thursday is still Wednesday evening in Sao Paulo.
    moment = datetime(2024, 5, 16, 1, 30, tzinfo=ZoneInfo("UTC"))
    assert day_of_week(moment) == 3


def test_banho_rejects_cat_on_wednesday() -> None:
    service = _service([{"day": 3, "species": ["dog"]}])

    decision = validate_scheduling(service, _pet(PetSpecies.CAT), WEDNESDAY)

    assert decision.allowed is False
    assert decision.reason is not None
    assert "Wednesday" in decision.reason
    assert decision.reason == "This service is only permitted for Dogs on Wednesdays"


def test_banho_allows_dog_on_wednesday() -> None:
    service = _service([{"day": 3, "species": ["dog"]}])

    decision = validate_scheduling(service, _pet(PetSpecies.DOG), WEDNESDAY)

    assert decision.allowed is True
    assert decision.reason is None


@pytest.mark.parametrize("offset", range(7))
@pytest.mark.parametrize("species", [PetSpecies.DOG, PetSpecies.CAT])
def test_rejects_exactly_when_rule_excludes_species(
    offset: int, species: PetSpecies
) -> None:
    rules = [{"day": 1, "species": ["cat"]}, {"day": 3, "species": ["dog"]}]
    service = _service(rules)
    target = SUNDAY + timedelta(days=offset)

    decision = validate_scheduling(service, _pet(species), target)

    allowed_for_day = {1: {"cat"}, 3: {"dog"}}.get(offset)
    expected = allowed_for_day is None or species.value in allowed_for_day
    assert decision.allowed is expected


def test_no_rules_always_allowed() -> None:
    service = _service([])
    for offset in range(7):
        target = SUNDAY + timedelta(days=offset)
        assert validate_scheduling(service, _pet(PetSpecies.CAT), target).allowed


def test_other_species_is_exempt() -> None:
    service = _service([{"day": 3, "species": ["dog"]}])

    assert validate_scheduling(service, _pet(PetSpecies.OTHER), WEDNESDAY).allowed


def test_empty_species_set_closes_the_day() -> None:
    service = _service([{"day": 3, "species": []}])

    decision = validate_scheduling(service, _pet(PetSpecies.DOG), WEDNESDAY)

    assert decision.allowed is False
    assert decision.reason == "This service is not available on Wednesdays"


def test_latest_rule_for_a_day_wins() -> None:
    rules = [{"day": 3, "species": ["dog"]}, {"day": 3, "species": ["cat"]}]

    assert effective_rules(rules) == {3: frozenset({"cat"})}
    service = _service(rules)
    assert validate_scheduling(service, _pet(PetSpecies.CAT), WEDNESDAY).allowed
    assert not validate_scheduling(service, _pet(PetSpecies.DOG), WEDNESDAY).allowed


def test_set_scheduling_rule_replaces_existing_day() -> None:
    rules = [{"day": 3, "species": ["dog"]}, {"day": 5, "species": ["cat"]}]

    updated = set_scheduling_rule(rules, day=3, species=["cat", "dog"])

    assert updated == [
        {"day": 3, "species": ["cat", "dog"]},
        {"day": 5, "species": ["cat"]},
    ]
    assert rules[0] == {"day": 3, "species": ["dog"]}


def test_set_scheduling_rule_rejects_bad_day() -> None:
    with pytest.raises(ValidationError):
        set_scheduling_rule([], day=7, species=["dog"])


def test_malformed_rules_are_ignored() -> None:
    rules = [{"species": ["dog"]}, {"day": "x"}, {"day": 9, "species": ["cat"]}]

    assert effective_rules(rules) == {}


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("cat", "cat"),
        ("Gato", "cat"),
        ("feline", "cat"),
        ("dog", "dog"),
        ("rabbit", "dog"),
        ("other", None),
        (PetSpecies.CAT, "cat"),
    ],
)
def test_normalize_species(raw: str | PetSpecies, expected: str | None) -> None:
    assert normalize_species(raw) == expected


def test_target_species_rejects_other_species() -> None:
    service = _service([], target_species=TargetSpecies.CAT)

    decision = evaluate_booking(service, _pet(PetSpecies.DOG), WEDNESDAY)

    assert decision.allowed is False
    assert decision.reason == "This service is only offered for Cats"
    assert evaluate_booking(service, _pet(PetSpecies.CAT), WEDNESDAY).allowed


def test_to_utc_treats_naive_input_as_business_time() -> None:
    naive = datetime(2024, 5, 15, 10, 0)

    converted = scheduling_service.to_utc(naive)

    assert converted == datetime(2024, 5, 15, 10, 0, tzinfo=SAO_PAULO)
    assert converted.utcoffset() == timedelta(0)
