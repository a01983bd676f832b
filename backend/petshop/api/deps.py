"""Common API dependencies."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.core.errors import EngineError, ErrorKind
from petshop.db.session import get_session
from petshop.models import Account
from petshop.services.appointment_actions import ActionResult

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STATE: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PERSISTENCE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_account_id(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    x_account_id: Annotated[str | None, Header(alias="X-Account-ID")] = None,
) -> uuid.UUID:
    """Tenant resolved upstream and forwarded in the ``X-Account-ID`` header."""
    if not x_account_id:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, detail="X-Account-ID header is required"
        )
    try:
        account_id = uuid.UUID(x_account_id)
    except ValueError as exc:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, detail="X-Account-ID must be a UUID"
        ) from exc
    if await session.get(Account, account_id) is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Account not found")
    return account_id


def http_error(exc: EngineError) -> HTTPException:
    """Translate an engine error into the matching HTTP error."""
    return HTTPException(_STATUS_BY_KIND[exc.kind], detail=exc.user_message)


def ensure_success(result: ActionResult) -> ActionResult:
    """Pass successful results through; raise the mapped HTTP error otherwise."""
    if result.success:
        return result
    code = _STATUS_BY_KIND.get(result.error, status.HTTP_400_BAD_REQUEST)
    raise HTTPException(code, detail=result.message)
