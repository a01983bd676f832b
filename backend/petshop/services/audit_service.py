"""Helper utilities for recording audit events."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.models.audit_event import AuditEvent


def record_event(
    session: AsyncSession,
    *,
    event_type: str,
    account_id: uuid.UUID | None = None,
    appointment_id: uuid.UUID | None = None,
    description: str | None = None,
    payload: dict[str, Any] | None = None,
) -> AuditEvent:
    """Stage an audit event in the caller's unit of work and return it.

    The event is committed together with the mutation it describes.
    """
    event = AuditEvent(
        account_id=account_id,
        appointment_id=appointment_id,
        event_type=event_type,
        description=description,
        payload=payload,
    )
    session.add(event)
    return event


async def list_events(
    session: AsyncSession,
    *,
    account_id: uuid.UUID,
    appointment_id: uuid.UUID | None = None,
) -> list[AuditEvent]:
    stmt = (
        select(AuditEvent)
        .where(AuditEvent.account_id == account_id)
        .order_by(AuditEvent.created_at, AuditEvent.event_type)
    )
    if appointment_id is not None:
        stmt = stmt.where(AuditEvent.appointment_id == appointment_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())
