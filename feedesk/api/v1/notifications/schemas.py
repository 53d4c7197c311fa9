"""Notification settings schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from feedesk.core.enums import NotificationChannel


class NotificationConfigResponse(BaseModel):
    """Stored provider config for one channel. Secret values are masked."""

    channel: NotificationChannel
    configured: bool
    provider: Optional[str] = None
    credentials: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None


class NotificationTestRequest(BaseModel):
    phone: str = Field(..., min_length=4, max_length=20)
    message: Optional[str] = Field(None, max_length=1000)
