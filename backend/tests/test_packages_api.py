"""API tests for package credits."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _sell(client: AsyncClient, seeded: dict[str, uuid.UUID]) -> dict:
    response = await client.post(
        f"/api/v1/pets/{seeded['dog_id']}/packages",
        json={"package_id": str(seeded["package_id"]), "payment_method": "pix"},
    )
    assert response.status_code == 201, response.text
    credits = response.json()
    assert len(credits) == 1
    return credits[0]


async def test_sell_book_and_read_usage(
    api_client: AsyncClient, seeded: dict[str, uuid.UUID]
) -> None:
    credit = await _sell(api_client, seeded)
    assert credit["total_qty"] == 5
    assert Decimal(credit["total_paid"]) == Decimal("400.00")
    assert credit["expires_at"] is not None

    booking = await api_client.post(
        "/api/v1/appointments",
        json={
            "pet_id": str(seeded["dog_id"]),
            "service_id": str(seeded["tosa_id"]),
            "scheduled_at": "2024-05-14T10:00:00-03:00",
        },
    )
    appointment = (
        await api_client.get(
            f"/api/v1/appointments/{booking.json()['appointment_id']}"
        )
    ).json()
    assert appointment["package_credit_id"] == credit["id"]
    assert appointment["payment_method"] == "credit_package"

    usage = await api_client.get(
        f"/api/v1/pets/{seeded['dog_id']}/packages/{credit['id']}"
    )
    assert usage.status_code == 200
    body = usage.json()
    assert (body["used_qty"], body["scheduled_qty"], body["available_qty"]) == (
        0,
        1,
        4,
    )
    assert [slot["status"] for slot in body["slots"]] == [
        "scheduled",
        "available",
        "available",
        "available",
        "available",
    ]

    listed = await api_client.get(f"/api/v1/pets/{seeded['dog_id']}/packages")
    assert [item["credit_id"] for item in listed.json()] == [credit["id"]]


async def test_usage_for_wrong_pet_is_404(
    api_client: AsyncClient, seeded: dict[str, uuid.UUID]
) -> None:
    credit = await _sell(api_client, seeded)

    response = await api_client.get(
        f"/api/v1/pets/{seeded['cat_id']}/packages/{credit['id']}"
    )

    assert response.status_code == 404


async def test_renew_and_cancel(
    api_client: AsyncClient, seeded: dict[str, uuid.UUID]
) -> None:
    credit = await _sell(api_client, seeded)

    renewed = await api_client.post(
        f"/api/v1/package-credits/{credit['id']}/renew",
        json={"total_paid": "350.00"},
    )
    assert renewed.status_code == 201
    renewed_body = renewed.json()
    assert renewed_body["renewed_from_id"] == credit["id"]
    assert renewed_body["total_qty"] == 10
    assert Decimal(renewed_body["total_paid"]) == Decimal("350.00")

    again = await api_client.post(f"/api/v1/package-credits/{credit['id']}/renew")
    assert again.status_code == 409

    cancelled = await api_client.post(
        f"/api/v1/package-credits/{renewed_body['id']}/cancel"
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["is_active"] is False
