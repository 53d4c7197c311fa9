"""Notification settings service: provider config per channel and dispatcher construction."""

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import status
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.config import settings
from feedesk.core.enums import NotificationChannel
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import NotificationSetting
from feedesk.notifications.dispatcher import DeliveryResult, NotificationDispatcher
from feedesk.notifications.providers import SmsProviderConfig, WhatsAppProviderConfig

from .schemas import NotificationConfigResponse

logger = logging.getLogger(__name__)

_ADAPTERS = {
    NotificationChannel.SMS: TypeAdapter(SmsProviderConfig),
    NotificationChannel.WHATSAPP: TypeAdapter(WhatsAppProviderConfig),
}
_SECRET_MARKERS = ("token", "key", "secret")
TEST_MESSAGE = "Test message from {school}. Notifications are configured correctly."


def _mask(name: str, value: Any) -> Any:
    if not isinstance(value, str) or not any(m in name.lower() for m in _SECRET_MARKERS):
        return value
    return "****" + value[-4:] if len(value) > 4 else "****"


def parse_provider_config(channel: NotificationChannel, data: Dict[str, Any]):
    try:
        return _ADAPTERS[channel].validate_python(data)
    except ValidationError as e:
        raise ServiceError(
            f"Invalid {channel.value} provider config: {e.errors()[0]['msg']}",
            status.HTTP_400_BAD_REQUEST,
        )


async def _get_setting(db: AsyncSession, channel: NotificationChannel) -> Optional[NotificationSetting]:
    result = await db.execute(select(NotificationSetting).where(NotificationSetting.channel == channel.value))
    return result.scalar_one_or_none()


async def load_provider_config(db: AsyncSession, channel: NotificationChannel):
    """Stored config for a channel, or None when missing or no longer valid."""
    row = await _get_setting(db, channel)
    if not row:
        return None
    try:
        return _ADAPTERS[channel].validate_python({**(row.credentials or {}), "provider": row.provider})
    except ValidationError as e:
        logger.warning("Stored %s config for %s is invalid: %s", channel.value, row.provider, e)
        return None


async def load_dispatcher(
    db: AsyncSession,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> NotificationDispatcher:
    return NotificationDispatcher(
        sms=await load_provider_config(db, NotificationChannel.SMS),
        whatsapp=await load_provider_config(db, NotificationChannel.WHATSAPP),
        country_code=settings.phone_country_code,
        transport=transport,
    )


def _setting_to_response(channel: NotificationChannel, row: Optional[NotificationSetting]) -> NotificationConfigResponse:
    if not row:
        return NotificationConfigResponse(channel=channel, configured=False)
    return NotificationConfigResponse(
        channel=channel,
        configured=True,
        provider=row.provider,
        credentials={k: _mask(k, v) for k, v in (row.credentials or {}).items()},
        updated_at=row.updated_at,
    )


async def get_config(db: AsyncSession, channel: NotificationChannel) -> NotificationConfigResponse:
    return _setting_to_response(channel, await _get_setting(db, channel))


async def put_config(
    db: AsyncSession,
    channel: NotificationChannel,
    data: Dict[str, Any],
) -> NotificationConfigResponse:
    config = parse_provider_config(channel, data)
    credentials = config.model_dump(exclude={"provider"})
    row = await _get_setting(db, channel)
    if row is None:
        row = NotificationSetting(channel=channel.value, provider=config.provider, credentials=credentials)
        db.add(row)
    else:
        row.provider = config.provider
        row.credentials = credentials
    await db.commit()
    await db.refresh(row)
    logger.info("%s provider set to %s", channel.value, config.provider)
    return _setting_to_response(channel, row)


async def delete_config(db: AsyncSession, channel: NotificationChannel) -> None:
    row = await _get_setting(db, channel)
    if not row:
        raise ServiceError(f"{channel.value} is not configured", status.HTTP_404_NOT_FOUND)
    await db.delete(row)
    await db.commit()
    logger.info("%s provider removed", channel.value)


async def send_test(
    db: AsyncSession,
    channel: NotificationChannel,
    phone: str,
    message: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DeliveryResult:
    dispatcher = await load_dispatcher(db, transport)
    text = message or TEST_MESSAGE.format(school=settings.school_short_name)
    return await dispatcher.send(channel, phone, text)
