from typing import Any, Dict, Optional, Union

import httpx
from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.rbac import require_admin
from feedesk.core.enums import NotificationChannel
from feedesk.core.exceptions import ServiceError
from feedesk.db.session import get_db
from feedesk.notifications.dispatcher import Delivered, Failed, get_notification_transport

from .schemas import NotificationConfigResponse, NotificationTestRequest
from . import service

router = APIRouter(
    prefix="/api/v1/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_admin)],
)


@router.get("/{channel}", response_model=NotificationConfigResponse)
async def get_notification_config(
    channel: NotificationChannel,
    db: AsyncSession = Depends(get_db),
) -> NotificationConfigResponse:
    return await service.get_config(db, channel)


@router.put("/{channel}", response_model=NotificationConfigResponse)
async def put_notification_config(
    channel: NotificationChannel,
    payload: Dict[str, Any] = Body(
        ...,
        examples=[{"provider": "twilio", "account_sid": "AC...", "auth_token": "...", "phone_number": "+1..."}],
    ),
    db: AsyncSession = Depends(get_db),
) -> NotificationConfigResponse:
    """Select the provider for a channel. `provider` picks the variant; the remaining keys are its credentials."""
    try:
        return await service.put_config(db, channel, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{channel}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification_config(
    channel: NotificationChannel,
    db: AsyncSession = Depends(get_db),
) -> None:
    try:
        await service.delete_config(db, channel)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{channel}/test", response_model=Union[Delivered, Failed])
async def send_test_notification(
    channel: NotificationChannel,
    payload: NotificationTestRequest,
    db: AsyncSession = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_notification_transport),
) -> Union[Delivered, Failed]:
    return await service.send_test(db, channel, payload.phone, payload.message, transport)
