import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text, Uuid

from feedesk.db.session import Base


class User(Base):
    """Login account. Teachers are scoped to one class and division."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    # admin | teacher
    role = Column(String(20), nullable=False)
    # Set for class teachers only
    class_name = Column("class", String(2), nullable=True)
    division = Column(String(1), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
