"""Tests for model enums and derived properties."""

from datetime import date, datetime

import pytest

from petshop.models import Appointment, AppointmentStatus, TERMINAL_STATUSES


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("done", AppointmentStatus.DONE),
        ("completed", AppointmentStatus.DONE),
        ("Canceled", AppointmentStatus.CANCELLED),
        ("cancelled", AppointmentStatus.CANCELLED),
        (" no_show ", AppointmentStatus.NO_SHOW),
    ],
)
def test_status_accepts_legacy_spellings(raw: str, expected: AppointmentStatus) -> None:
    assert AppointmentStatus(raw) is expected


def test_unknown_status_is_rejected() -> None:
    with pytest.raises(ValueError):
        AppointmentStatus("finished")


def test_terminal_statuses() -> None:
    assert TERMINAL_STATUSES == {
        AppointmentStatus.DONE,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }
    assert not AppointmentStatus.IN_PROGRESS.is_terminal


def test_is_stay() -> None:
    single = Appointment(scheduled_at=datetime(2024, 5, 14, 13, 0))
    stay = Appointment(
        scheduled_at=datetime(2024, 5, 14, 15, 0),
        check_in_date=date(2024, 5, 14),
        check_out_date=date(2024, 5, 16),
    )

    assert single.is_stay is False
    assert stay.is_stay is True
