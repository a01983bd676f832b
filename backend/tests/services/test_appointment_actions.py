"""Tests for the result-returning action layer."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.core.errors import ErrorKind
from petshop.models import Appointment, AppointmentStatus
from petshop.services import appointment_actions
from petshop.services.package_service import PackageUsage

pytestmark = pytest.mark.asyncio

SAO_PAULO = ZoneInfo("America/Sao_Paulo")
TUESDAY_10 = datetime(2024, 5, 14, 10, 0, tzinfo=SAO_PAULO)
WEDNESDAY = date(2024, 5, 15)


async def _create(
    session: AsyncSession, seeded: dict[str, uuid.UUID], **kwargs
) -> appointment_actions.ActionResult:
    params = {
        "account_id": seeded["account_id"],
        "pet_id": seeded["dog_id"],
        "service_id": seeded["banho_id"],
        "scheduled_at": TUESDAY_10,
    }
    params.update(kwargs)
    return await appointment_actions.create_appointment(session, **params)


async def test_create_success_carries_appointment_id(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    result = await _create(db_session, seeded)

    assert result.success is True
    assert result.message == "Appointment created"
    assert result.appointment_id is not None
    assert result.error is None


async def test_restriction_violation_is_a_validation_failure(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    result = await _create(
        db_session,
        seeded,
        pet_id=seeded["cat_id"],
        scheduled_at=datetime(2024, 5, 15, 10, 0, tzinfo=SAO_PAULO),
    )

    assert result.success is False
    assert result.error is ErrorKind.VALIDATION
    assert result.message == "This service is only permitted for Dogs on Wednesdays"
    assert result.appointment_id is None


async def test_state_failures_are_prefixed(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    created = await _create(db_session, seeded)
    ids = {"account_id": seeded["account_id"], "appointment_id": created.appointment_id}

    first = await appointment_actions.check_in(db_session, **ids)
    second = await appointment_actions.check_in(db_session, **ids)

    assert first.success is True
    assert first.message == "Check-in recorded"
    assert second.success is False
    assert second.error is ErrorKind.STATE
    assert second.message.startswith("Operation not allowed in current state: ")


async def test_unknown_appointment_is_not_found(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    result = await appointment_actions.confirm_appointment(
        db_session, account_id=seeded["account_id"], appointment_id=uuid.uuid4()
    )

    assert result.success is False
    assert result.error is ErrorKind.NOT_FOUND


async def test_other_tenant_cannot_touch_appointment(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    created = await _create(db_session, seeded)

    result = await appointment_actions.mark_paid(
        db_session,
        account_id=seeded["other_account_id"],
        appointment_id=created.appointment_id,
        method="cash",
    )

    assert result.error is ErrorKind.NOT_FOUND


async def test_full_flow_messages(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    created = await _create(db_session, seeded, service_id=seeded["tosa_id"])
    ids = {"account_id": seeded["account_id"], "appointment_id": created.appointment_id}

    results = [
        await appointment_actions.confirm_appointment(db_session, **ids),
        await appointment_actions.apply_discount(db_session, percent="15", **ids),
        await appointment_actions.check_in(db_session, **ids),
        await appointment_actions.update_checklist(
            db_session, items=[{"text": "Trim", "completed": True}], **ids
        ),
        await appointment_actions.check_out(db_session, **ids),
        await appointment_actions.mark_paid(db_session, method="credit", **ids),
        await appointment_actions.mark_unpaid(db_session, **ids),
    ]

    assert all(result.success for result in results)
    assert [result.message for result in results] == [
        "Appointment confirmed",
        "Discount applied",
        "Check-in recorded",
        "Checklist updated",
        "Check-out recorded",
        "Payment recorded",
        "Payment reversed",
    ]
    assert {result.appointment_id for result in results} == {created.appointment_id}


async def test_invalid_discount_message(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    created = await _create(db_session, seeded)

    result = await appointment_actions.apply_discount(
        db_session,
        account_id=seeded["account_id"],
        appointment_id=created.appointment_id,
        percent="150",
    )

    assert result.success is False
    assert result.error is ErrorKind.VALIDATION
    assert result.message == "Discount must be a number between 0 and 100"


async def test_cancel_reports_delete_or_cancel(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    fresh = await _create(db_session, seeded)
    started = await _create(db_session, seeded, service_id=seeded["tosa_id"])
    account_id = seeded["account_id"]
    await appointment_actions.check_in(
        db_session, account_id=account_id, appointment_id=started.appointment_id
    )

    deleted = await appointment_actions.cancel_appointment(
        db_session, account_id=account_id, appointment_id=fresh.appointment_id
    )
    cancelled = await appointment_actions.cancel_appointment(
        db_session,
        account_id=account_id,
        appointment_id=started.appointment_id,
        reason="Owner request",
    )
    again = await appointment_actions.cancel_appointment(
        db_session, account_id=account_id, appointment_id=started.appointment_id
    )

    assert (deleted.success, deleted.message) == (True, "Appointment deleted")
    assert (cancelled.success, cancelled.message) == (True, "Appointment cancelled")
    assert again.error is ErrorKind.STATE


async def test_reschedule_and_no_show_messages(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    created = await _create(db_session, seeded, created_by_staff=True)
    ids = {"account_id": seeded["account_id"], "appointment_id": created.appointment_id}

    moved = await appointment_actions.reschedule_appointment(
        db_session,
        scheduled_at=datetime(2024, 5, 16, 14, 0, tzinfo=SAO_PAULO),
        **ids,
    )
    no_show = await appointment_actions.mark_no_show(db_session, **ids)

    assert moved.message == "Appointment rescheduled"
    assert no_show.message == "Appointment marked as no-show"


async def test_validate_scheduling_feedback(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    params = {"account_id": seeded["account_id"], "service_id": seeded["banho_id"]}

    cat = await appointment_actions.validate_scheduling(
        db_session, pet_id=seeded["cat_id"], target=WEDNESDAY, **params
    )
    dog = await appointment_actions.validate_scheduling(
        db_session, pet_id=seeded["dog_id"], target=WEDNESDAY, **params
    )
    missing = await appointment_actions.validate_scheduling(
        db_session, pet_id=uuid.uuid4(), target=WEDNESDAY, **params
    )

    assert cat.allowed is False
    assert "Wednesday" in (cat.reason or "")
    assert dog.allowed is True
    assert missing.allowed is False
    assert missing.reason == "Pet not found for account"


async def test_package_usage_unknown_credit(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    result = await appointment_actions.get_package_usage(
        db_session,
        account_id=seeded["account_id"],
        pet_id=seeded["dog_id"],
        credit_id=uuid.uuid4(),
    )

    assert not isinstance(result, PackageUsage)
    assert result.success is False
    assert result.error is ErrorKind.NOT_FOUND


GENERIC_FAILURE = "The operation could not be completed. Please try again."


async def _install_trigger(session: AsyncSession, name: str, event: str) -> None:
    await session.execute(
        text(
            f"CREATE TRIGGER {name} BEFORE {event} ON appointments "
            "BEGIN SELECT RAISE(ABORT, 'storage write failed'); END;"
        )
    )
    await session.commit()


async def _appointment_count(session: AsyncSession) -> int:
    return (
        await session.execute(select(func.count()).select_from(Appointment))
    ).scalar_one()


async def test_failed_insert_is_a_persistence_failure(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    await _install_trigger(db_session, "fail_appointment_insert", "INSERT")

    result = await _create(db_session, seeded)

    assert result.success is False
    assert result.error is ErrorKind.PERSISTENCE
    assert result.message == GENERIC_FAILURE
    assert result.appointment_id is None
    assert await _appointment_count(db_session) == 0


async def test_failed_update_leaves_status_unchanged(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    created = await _create(db_session, seeded)
    appointment_id = created.appointment_id
    await _install_trigger(db_session, "fail_appointment_update", "UPDATE")

    result = await appointment_actions.confirm_appointment(
        db_session, account_id=seeded["account_id"], appointment_id=appointment_id
    )

    assert result.success is False
    assert result.error is ErrorKind.PERSISTENCE
    assert result.message == GENERIC_FAILURE
    stored = (
        await db_session.execute(
            select(Appointment.status).where(Appointment.id == appointment_id)
        )
    ).scalar_one()
    assert stored is AppointmentStatus.PENDING


async def test_failed_read_during_booking_is_a_persistence_failure(
    db_session: AsyncSession, seeded: dict[str, uuid.UUID]
) -> None:
    await db_session.execute(text("DROP TABLE package_credits"))
    await db_session.commit()

    result = await _create(db_session, seeded, service_id=seeded["tosa_id"])
    usage = await appointment_actions.get_package_usage(
        db_session,
        account_id=seeded["account_id"],
        pet_id=seeded["dog_id"],
        credit_id=uuid.uuid4(),
    )

    assert result.success is False
    assert result.error is ErrorKind.PERSISTENCE
    assert result.message == GENERIC_FAILURE
    assert not isinstance(usage, PackageUsage)
    assert usage.error is ErrorKind.PERSISTENCE
    assert await _appointment_count(db_session) == 0
