"""Provider selection and credentials for payment notifications."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String, Uuid

from feedesk.db.session import Base


class NotificationSetting(Base):
    """One row per channel (sms, whatsapp)."""

    __tablename__ = "notification_settings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    channel = Column(String(20), nullable=False, unique=True)
    provider = Column(String(30), nullable=False)
    # Example shape (twilio): {"account_sid": "...", "auth_token": "...", "phone_number": "..."}
    credentials = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
