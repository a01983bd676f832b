"""Revenue reporting API."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.api import deps
from petshop.core.errors import EngineError
from petshop.schemas.report import RevenueSummaryRead
from petshop.services import revenue_service

router = APIRouter()


@router.get("/revenue", response_model=RevenueSummaryRead)
async def revenue_report(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    account_id: Annotated[uuid.UUID, Depends(deps.get_account_id)],
    date_from: Annotated[date, Query()],
    date_to: Annotated[date, Query()],
) -> RevenueSummaryRead:
    try:
        summary = await revenue_service.summarize_revenue(
            session, account_id=account_id, date_from=date_from, date_to=date_to
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return RevenueSummaryRead.model_validate(summary)
