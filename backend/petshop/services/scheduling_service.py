"""Day-of-week x species booking rules, schedule blocks and the slot grid."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any, Final, Iterable, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.core.config import Settings, get_settings
from petshop.core.errors import NotFoundError, ValidationError
from petshop.db.session import commit_or_raise
from petshop.models import (
    Pet,
    PetSpecies,
    ScheduleBlock,
    Service,
    ServiceCategory,
    TargetSpecies,
)

logger = logging.getLogger(__name__)

DAY_NAMES: Final = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

_SPECIES_LABELS: Final = {"dog": "Dogs", "cat": "Cats"}
_FELINE_SPELLINGS: Final = frozenset({"cat", "cats", "feline", "felino", "gato", "gata"})
_EXEMPT_SPECIES: Final = frozenset({"other"})

BLOCK_EXEMPT_CATEGORIES: Final = frozenset(
    {ServiceCategory.CRECHE, ServiceCategory.HOTEL}
)


@dataclass(slots=True)
class SchedulingDecision:
    """Outcome of a booking check; ``reason`` is set when rejected."""

    allowed: bool
    reason: str | None = None


@dataclass(slots=True)
class TimeSlot:
    """One entry of the booking grid."""

    start_at: datetime
    available: bool
    reason: str | None = None


def _business_tz(settings: Settings | None = None) -> ZoneInfo:
    return (settings or get_settings()).tzinfo


def to_utc(moment: datetime, *, settings: Settings | None = None) -> datetime:
    """Normalize user input to UTC; naive values are business-local time."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=_business_tz(settings))
    return moment.astimezone(UTC)


def from_storage(moment: datetime) -> datetime:
    """Stored timestamps are UTC; some drivers hand them back naive."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def local_date(target: date | datetime, *, settings: Settings | None = None) -> date:
    """Calendar day of ``target`` in the business time zone."""
    if isinstance(target, datetime):
        if target.tzinfo is None:
            return target.date()
        return target.astimezone(_business_tz(settings)).date()
    return target


def day_of_week(target: date | datetime, *, settings: Settings | None = None) -> int:
    """Weekday index with 0 = Sunday .. 6 = Saturday."""
    return (local_date(target, settings=settings).weekday() + 1) % 7


def local_datetime(
    day: date, at: time, *, settings: Settings | None = None
) -> datetime:
    """Aware UTC datetime for a wall-clock time on a business-local day."""
    return datetime.combine(day, at, tzinfo=_business_tz(settings)).astimezone(UTC)


def normalize_species(value: PetSpecies | str | None) -> str | None:
    """Map a pet species onto the rule buckets.

    Returns ``None`` for species exempt from species rules.
    """
    raw = value.value if isinstance(value, PetSpecies) else (value or "")
    raw = raw.strip().lower()
    if raw in _EXEMPT_SPECIES:
        return None
    if raw in _FELINE_SPELLINGS:
        return "cat"
    return "dog"


def _rule_species(values: Iterable[Any] | None) -> frozenset[str]:
    species: set[str] = set()
    for value in values or ():
        bucket = normalize_species(str(value))
        if bucket is not None:
            species.add(bucket)
    return frozenset(species)


def effective_rules(rules: Sequence[dict[str, Any]] | None) -> dict[int, frozenset[str]]:
    """Collapse stored rules into one species set per day; later entries win."""
    result: dict[int, frozenset[str]] = {}
    for rule in rules or ():
        try:
            day = int(rule["day"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed scheduling rule: %r", rule)
            continue
        if not 0 <= day <= 6:
            logger.warning("Ignoring scheduling rule with day out of range: %r", rule)
            continue
        result[day] = _rule_species(rule.get("species"))
    return result


def set_scheduling_rule(
    rules: Sequence[dict[str, Any]] | None,
    *,
    day: int,
    species: Iterable[str],
) -> list[dict[str, Any]]:
    """Return a new rule list where ``day`` holds exactly one rule."""
    if not 0 <= day <= 6:
        raise ValidationError("Day of week must be between 0 (Sunday) and 6 (Saturday)")
    kept = [dict(rule) for rule in rules or () if rule.get("day") != day]
    kept.append({"day": day, "species": sorted(_rule_species(species))})
    return sorted(kept, key=lambda rule: int(rule["day"]))


def _join_labels(species: Iterable[str]) -> str:
    labels = [_SPECIES_LABELS[item] for item in sorted(species)]
    return " and ".join(labels)


def validate_scheduling(
    service: Service,
    pet: Pet,
    target: date | datetime,
    *,
    settings: Settings | None = None,
) -> SchedulingDecision:
    """Decide whether ``pet`` may book ``service`` on the day of ``target``."""
    weekday = day_of_week(target, settings=settings)
    allowed_species = effective_rules(service.scheduling_rules).get(weekday)
    if allowed_species is None:
        return SchedulingDecision(allowed=True)

    species = normalize_species(pet.species)
    if species is None or species in allowed_species:
        return SchedulingDecision(allowed=True)

    day_label = f"{DAY_NAMES[weekday]}s"
    if not allowed_species:
        reason = f"This service is not available on {day_label}"
    else:
        reason = (
            f"This service is only permitted for {_join_labels(allowed_species)} "
            f"on {day_label}"
        )
    return SchedulingDecision(allowed=False, reason=reason)


def check_target_species(service: Service, pet: Pet) -> SchedulingDecision:
    """Reject pets of the wrong species for a dog-only or cat-only service."""
    target = service.target_species
    if target is None or TargetSpecies(target) is TargetSpecies.BOTH:
        return SchedulingDecision(allowed=True)
    species = normalize_species(pet.species)
    if species is None or species == TargetSpecies(target).value:
        return SchedulingDecision(allowed=True)
    label = _SPECIES_LABELS[TargetSpecies(target).value]
    return SchedulingDecision(
        allowed=False, reason=f"This service is only offered for {label}"
    )


def evaluate_booking(
    service: Service,
    pet: Pet,
    target: date | datetime,
    *,
    settings: Settings | None = None,
) -> SchedulingDecision:
    """Species targeting followed by the day-of-week rules."""
    decision = check_target_species(service, pet)
    if not decision.allowed:
        return decision
    return validate_scheduling(service, pet, target, settings=settings)


def is_block_exempt(service: Service) -> bool:
    return service.category in BLOCK_EXEMPT_CATEGORIES


def service_duration(service: Service, *, settings: Settings | None = None) -> timedelta:
    minutes = service.duration_minutes or (
        settings or get_settings()
    ).default_service_duration_minutes
    return timedelta(minutes=minutes)


def _block_allows(block: ScheduleBlock, species: PetSpecies | str | None) -> bool:
    if not block.allowed_species:
        return False
    bucket = normalize_species(species) or "dog"
    return bucket in _rule_species(block.allowed_species)


def find_blocking_block(
    blocks: Iterable[ScheduleBlock],
    *,
    start: datetime,
    end: datetime,
    species: PetSpecies | str | None,
) -> ScheduleBlock | None:
    """First block overlapping ``[start, end)`` that does not admit ``species``."""
    start_utc = from_storage(start)
    end_utc = from_storage(end)
    for block in blocks:
        if (
            from_storage(block.start_at) < end_utc
            and from_storage(block.end_at) > start_utc
            and not _block_allows(block, species)
        ):
            return block
    return None


def list_time_slots(
    service: Service,
    pet: Pet,
    day: date,
    blocks: Sequence[ScheduleBlock],
    *,
    settings: Settings | None = None,
) -> list[TimeSlot]:
    """Booking grid for ``day``, each slot flagged available or blocked."""
    settings = settings or get_settings()
    open_at = local_datetime(day, time(hour=settings.slot_open_hour), settings=settings)
    close_at = local_datetime(
        day, time(hour=settings.slot_close_hour), settings=settings
    )
    step = timedelta(minutes=settings.slot_interval_minutes)

    decision = evaluate_booking(service, pet, day, settings=settings)
    exempt = is_block_exempt(service)

    slots: list[TimeSlot] = []
    moment = open_at
    while moment <= close_at:
        if not decision.allowed:
            slots.append(TimeSlot(moment, available=False, reason=decision.reason))
        else:
            block = None
            if not exempt:
                block = find_blocking_block(
                    blocks,
                    start=moment,
                    end=moment + timedelta(microseconds=1),
                    species=pet.species,
                )
            if block is None:
                slots.append(TimeSlot(moment, available=True))
            else:
                slots.append(TimeSlot(moment, available=False, reason=block.reason))
        moment += step
    return slots


async def list_schedule_blocks(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[ScheduleBlock]:
    """Blocks of an account, optionally those overlapping ``[start, end)``."""
    stmt: Select[tuple[ScheduleBlock]] = (
        select(ScheduleBlock)
        .where(ScheduleBlock.account_id == account_id)
        .order_by(ScheduleBlock.start_at)
    )
    if end is not None:
        stmt = stmt.where(ScheduleBlock.start_at < to_utc(end))
    if start is not None:
        stmt = stmt.where(ScheduleBlock.end_at > to_utc(start))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_blocks_for_day(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    day: date,
    settings: Settings | None = None,
) -> list[ScheduleBlock]:
    start = local_datetime(day, time.min, settings=settings)
    return await list_schedule_blocks(
        session, account_id=account_id, start=start, end=start + timedelta(days=1)
    )


async def create_schedule_block(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    start_at: datetime,
    end_at: datetime,
    reason: str,
    allowed_species: Sequence[str] | None = None,
) -> ScheduleBlock:
    start_utc = to_utc(start_at)
    end_utc = to_utc(end_at)
    if end_utc <= start_utc:
        raise ValidationError("Block end must be after its start")
    if not reason.strip():
        raise ValidationError("Block reason is required")

    block = ScheduleBlock(
        account_id=account_id,
        start_at=start_utc,
        end_at=end_utc,
        reason=reason.strip(),
        allowed_species=sorted(_rule_species(allowed_species)) or None,
    )
    session.add(block)
    await commit_or_raise(session, operation="create schedule block")
    await session.refresh(block)
    logger.info(
        "Schedule block %s created for account %s (%s - %s)",
        block.id,
        account_id,
        start_utc.isoformat(),
        end_utc.isoformat(),
    )
    return block


async def delete_schedule_block(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    block_id: uuid.UUID,
) -> None:
    block = await session.get(ScheduleBlock, block_id)
    if block is None or block.account_id != account_id:
        raise NotFoundError("Schedule block not found for account")
    await session.delete(block)
    await commit_or_raise(session, operation="delete schedule block")
    logger.info("Schedule block %s deleted for account %s", block_id, account_id)
