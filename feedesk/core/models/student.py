"""Student: identity, class placement and bus assignment used for fee lookups."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from feedesk.db.session import Base


class Student(Base):
    """Student record. Class is "1".."12"; division is "A".."E"."""

    __tablename__ = "students"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    admission_no = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    mobile = Column(String(20), nullable=False, default="")
    # "class" is a reserved word in Python, so the attribute is class_name
    class_name = Column("class", String(2), nullable=False, index=True)
    division = Column(String(1), nullable=False)
    bus_stop = Column(String(255), nullable=False, default="")
    bus_number = Column(String(50), nullable=False, default="")
    trip_number = Column(String(50), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    payments = relationship("Payment", back_populates="student")
