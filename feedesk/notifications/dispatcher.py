"""Best-effort notification dispatch.

Sending never raises: every outcome comes back as ``Delivered`` or
``Failed(reason)`` and is logged here, so callers on the payment path can
fire and forget.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import List, Literal, Optional, Union

import httpx
from pydantic import BaseModel

from feedesk.core.enums import NotificationChannel
from feedesk.core.exceptions import ProviderError
from feedesk.fees.receipt import format_amount, format_date
from feedesk.notifications.providers import SmsProviderConfig, WhatsAppProviderConfig

logger = logging.getLogger(__name__)


class Delivered(BaseModel):
    status: Literal["delivered"] = "delivered"
    channel: NotificationChannel
    provider: str


class Failed(BaseModel):
    status: Literal["failed"] = "failed"
    channel: NotificationChannel
    provider: Optional[str] = None
    reason: str


DeliveryResult = Union[Delivered, Failed]


def payment_message(
    total_amount,
    student_name: str,
    admission_no: str,
    paid_on: Union[date, datetime],
    school_short_name: str,
) -> str:
    return (
        f"Dear Parent, Payment of {format_amount(total_amount)} received for {student_name} "
        f"({admission_no}). Date: {format_date(paid_on)}. Thank you! - {school_short_name}"
    )


class NotificationDispatcher:
    def __init__(
        self,
        sms: Optional[SmsProviderConfig] = None,
        whatsapp: Optional[WhatsAppProviderConfig] = None,
        country_code: str = "91",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.sms = sms
        self.whatsapp = whatsapp
        self.country_code = country_code
        self.transport = transport

    def _provider_for(self, channel: NotificationChannel):
        return self.sms if channel == NotificationChannel.SMS else self.whatsapp

    async def send(self, channel: NotificationChannel, mobile: str, message: str) -> DeliveryResult:
        config = self._provider_for(channel)
        if config is None:
            logger.info("%s not configured, skipping notification to %s", channel.value, mobile)
            return Failed(channel=channel, reason="not configured")
        if not mobile:
            logger.warning("No mobile number, skipping %s notification", channel.value)
            return Failed(channel=channel, provider=config.provider, reason="no mobile number")

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                await config.send(client, mobile, message, self.country_code)
        except (ProviderError, httpx.HTTPError) as e:
            logger.error("%s via %s failed to %s: %s", channel.value, config.provider, mobile, e)
            return Failed(channel=channel, provider=config.provider, reason=str(e) or e.__class__.__name__)
        except Exception as e:
            logger.exception("%s via %s crashed sending to %s", channel.value, config.provider, mobile)
            return Failed(
                channel=channel,
                provider=config.provider,
                reason=f"Unexpected error: {e.__class__.__name__}: {e}",
            )

        logger.info("%s sent via %s to %s", channel.value, config.provider, mobile)
        return Delivered(channel=channel, provider=config.provider)

    async def send_sms(self, mobile: str, message: str) -> DeliveryResult:
        return await self.send(NotificationChannel.SMS, mobile, message)

    async def send_whatsapp(self, mobile: str, message: str) -> DeliveryResult:
        return await self.send(NotificationChannel.WHATSAPP, mobile, message)

    async def notify(self, mobile: str, message: str) -> List[DeliveryResult]:
        """SMS and WhatsApp independently; one failing does not stop the other."""
        channels = (NotificationChannel.SMS, NotificationChannel.WHATSAPP)
        results = await asyncio.gather(
            *(self.send(channel, mobile, message) for channel in channels),
            return_exceptions=True,
        )
        outcomes: List[DeliveryResult] = []
        for channel, result in zip(channels, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("%s notification to %s aborted: %r", channel.value, mobile, result)
                result = Failed(channel=channel, reason=f"Unexpected error: {result!r}")
            outcomes.append(result)
        return outcomes


def get_notification_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Dependency: transport for provider calls. None uses the network; tests override it."""
    return None
