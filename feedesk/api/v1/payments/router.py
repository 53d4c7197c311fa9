from datetime import date
from typing import List, Optional
from uuid import UUID

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.api.v1.notifications.service import load_dispatcher
from feedesk.auth.dependencies import get_current_user
from feedesk.auth.rbac import require_admin
from feedesk.auth.schemas import CurrentUser
from feedesk.core.exceptions import ServiceError
from feedesk.db.session import get_db
from feedesk.notifications.dispatcher import get_notification_transport

from .schemas import PaymentCreate, PaymentCreateResponse, PaymentResponse, PaymentUpdate
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post(
    "",
    response_model=PaymentCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    payload: PaymentCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_notification_transport),
) -> PaymentCreateResponse:
    """Record a payment, then notify the parent by SMS and WhatsApp after the response is sent."""
    try:
        created, mobile, message = await service.create_payment(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if mobile:
        dispatcher = await load_dispatcher(db, transport)
        background_tasks.add_task(dispatcher.notify, mobile, message)
    return created


@router.get("", response_model=List[PaymentResponse])
async def list_payments(
    class_name: Optional[str] = Query(None),
    division: Optional[str] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    student_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, description="Matches student name or admission number"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PaymentResponse]:
    return await service.list_payments(
        db,
        current_user,
        class_name=class_name,
        division=division,
        on_date=on_date,
        date_from=date_from,
        date_to=date_to,
        student_id=student_id,
        search=search,
    )


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    try:
        return await service.get_payment(db, current_user, payment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{payment_id}",
    response_model=PaymentResponse,
    dependencies=[Depends(require_admin)],
)
async def update_payment(
    payment_id: UUID,
    payload: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    try:
        return await service.update_payment(db, payment_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{payment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    try:
        await service.delete_payment(db, payment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
