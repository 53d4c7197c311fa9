"""Fee configuration rows: development fee per class key and fee per bus stop."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Numeric, String, UniqueConstraint, Uuid

from feedesk.db.session import Base


class FeeConfig(Base):
    """One schedule entry. config_type is development_fee or bus_stop."""

    __tablename__ = "fee_config"
    __table_args__ = (
        UniqueConstraint("config_type", "config_key", name="uq_fee_config_type_key"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    config_type = Column(String(30), nullable=False)
    # Class ("7"), class-division ("11-B") or bus stop name
    config_key = Column(String(255), nullable=False)
    config_value = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
