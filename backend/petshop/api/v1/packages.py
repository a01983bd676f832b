"""Package credit usage, sales and renewal API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.api import deps
from petshop.core.errors import EngineError
from petshop.schemas.package import (
    PackageCreditRead,
    PackageRenewal,
    PackageSale,
    PackageUsageRead,
)
from petshop.services import package_service

router = APIRouter()

SessionDep = Annotated[AsyncSession, Depends(deps.get_db_session)]
AccountDep = Annotated[uuid.UUID, Depends(deps.get_account_id)]


@router.get("/pets/{pet_id}/packages", response_model=list[PackageUsageRead])
async def list_pet_packages(
    pet_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> list[PackageUsageRead]:
    try:
        usages = await package_service.list_pet_package_usage(
            session, account_id=account_id, pet_id=pet_id
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return [PackageUsageRead.model_validate(usage) for usage in usages]


@router.get(
    "/pets/{pet_id}/packages/{credit_id}", response_model=PackageUsageRead
)
async def get_package_usage(
    pet_id: uuid.UUID,
    credit_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> PackageUsageRead:
    try:
        usage = await package_service.get_package_usage(
            session, account_id=account_id, pet_id=pet_id, credit_id=credit_id
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return PackageUsageRead.model_validate(usage)


@router.post(
    "/pets/{pet_id}/packages",
    response_model=list[PackageCreditRead],
    status_code=status.HTTP_201_CREATED,
)
async def sell_package(
    pet_id: uuid.UUID,
    payload: PackageSale,
    session: SessionDep,
    account_id: AccountDep,
) -> list[PackageCreditRead]:
    try:
        credits = await package_service.sell_package_to_pet(
            session,
            account_id=account_id,
            pet_id=pet_id,
            package_id=payload.package_id,
            total_paid=payload.total_paid,
            payment_method=payload.payment_method,
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return [PackageCreditRead.model_validate(credit) for credit in credits]


@router.post(
    "/package-credits/{credit_id}/renew",
    response_model=PackageCreditRead,
    status_code=status.HTTP_201_CREATED,
)
async def renew_package_credit(
    credit_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
    payload: PackageRenewal | None = None,
) -> PackageCreditRead:
    try:
        credit = await package_service.renew_package_credit(
            session,
            account_id=account_id,
            credit_id=credit_id,
            total_paid=payload.total_paid if payload else None,
            payment_method=payload.payment_method if payload else None,
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return PackageCreditRead.model_validate(credit)


@router.post(
    "/package-credits/{credit_id}/cancel", response_model=PackageCreditRead
)
async def cancel_package_credit(
    credit_id: uuid.UUID,
    session: SessionDep,
    account_id: AccountDep,
) -> PackageCreditRead:
    try:
        credit = await package_service.cancel_package_credit(
            session, account_id=account_id, credit_id=credit_id
        )
    except EngineError as exc:
        raise deps.http_error(exc) from exc
    return PackageCreditRead.model_validate(credit)
