"""Payment: one fee collection event. Carries a snapshot of the student's identity."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from feedesk.db.session import Base


class Payment(Base):
    """Ledger entry. total_amount == development_fee + bus_fee + special_fee."""

    __tablename__ = "payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Kept after the student is deleted so historical receipts still print
    student_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("students.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    student_name = Column(String(255), nullable=False)
    admission_no = Column(String(50), nullable=False)
    development_fee = Column(Numeric(12, 2), nullable=False, default=0)
    bus_fee = Column(Numeric(12, 2), nullable=False, default=0)
    special_fee = Column(Numeric(12, 2), nullable=False, default=0)
    special_fee_type = Column(String(100), nullable=False, default="")
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)
    added_by = Column(String(100), nullable=False, default="")
    class_name = Column("class", String(2), nullable=False, index=True)
    division = Column(String(1), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="payments")
