"""Payments schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from feedesk.fees.balance import FeeBalance


class PaymentCreate(BaseModel):
    """Amounts as entered. Development and bus are clamped to the remaining balance."""

    student_id: Optional[UUID] = None
    development_fee: Decimal = Decimal("0")
    bus_fee: Decimal = Decimal("0")
    special_fee: Decimal = Decimal("0")
    special_fee_type: Optional[str] = Field(None, max_length=100)


class PaymentUpdate(BaseModel):
    """Admin correction. total_amount is always recomputed from the parts."""

    development_fee: Optional[Decimal] = Field(None, ge=0)
    bus_fee: Optional[Decimal] = Field(None, ge=0)
    special_fee: Optional[Decimal] = Field(None, ge=0)
    special_fee_type: Optional[str] = Field(None, max_length=100)


class PaymentResponse(BaseModel):
    id: UUID
    student_id: Optional[UUID] = None
    student_name: str
    admission_no: str
    development_fee: Decimal
    bus_fee: Decimal
    special_fee: Decimal
    special_fee_type: str
    total_amount: Decimal
    payment_date: datetime
    added_by: str
    class_name: str
    division: str
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentCreateResponse(BaseModel):
    payment: PaymentResponse
    balance: FeeBalance = Field(..., description="Balance after this payment")
