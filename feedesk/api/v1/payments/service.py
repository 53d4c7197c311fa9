"""Payments service: record fee collections against the ledger, list, correct and delete."""

import logging
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.api.v1.fee_config.service import load_fee_schedule
from feedesk.auth.rbac import ensure_class_access
from feedesk.auth.schemas import CurrentUser
from feedesk.core.config import settings
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import Payment, Student
from feedesk.fees.balance import calculate_balance
from feedesk.fees.entry import clamp_entry, validate_entry
from feedesk.fees.ledger import compute_total, filter_payments
from feedesk.fees.schedule import to_amount
from feedesk.notifications.dispatcher import payment_message

from .schemas import PaymentCreate, PaymentCreateResponse, PaymentResponse, PaymentUpdate

logger = logging.getLogger(__name__)


def _payment_to_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse.model_validate(payment)


async def _get_payment(db: AsyncSession, payment_id: UUID) -> Payment:
    result = await db.execute(select(Payment).where(Payment.id == payment_id))
    payment = result.scalar_one_or_none()
    if not payment:
        raise ServiceError("Payment not found", status.HTTP_404_NOT_FOUND)
    return payment


async def _student_ledger(db: AsyncSession, student_id: UUID) -> List[Payment]:
    result = await db.execute(select(Payment).where(Payment.student_id == student_id))
    return list(result.scalars().all())


async def create_payment(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: PaymentCreate,
) -> Tuple[PaymentCreateResponse, Optional[str], str]:
    """Record one payment.

    Development and bus amounts are clamped to what the student still owes,
    then the entry is validated and committed. Returns the created payment
    with the balance after it, plus the mobile number and message for the
    parent notification, which the caller sends once the response is out.
    """
    if payload.student_id is None:
        raise ServiceError("Please select a student", status.HTTP_400_BAD_REQUEST)
    result = await db.execute(select(Student).where(Student.id == payload.student_id))
    student = result.scalar_one_or_none()
    if not student:
        raise ServiceError("Student not found", status.HTTP_404_NOT_FOUND)
    ensure_class_access(current_user, student.class_name, student.division)

    schedule = await load_fee_schedule(db)
    ledger = await _student_ledger(db, student.id)
    balance = calculate_balance(student, ledger, schedule)

    amounts = validate_entry(
        True,
        clamp_entry(
            balance,
            development_fee=payload.development_fee,
            bus_fee=payload.bus_fee,
            special_fee=payload.special_fee,
            special_fee_type=payload.special_fee_type,
        ),
        allow_special_fee=current_user.is_admin,
    )

    payment = Payment(
        student_id=student.id,
        student_name=student.name,
        admission_no=student.admission_no,
        development_fee=amounts.development_fee,
        bus_fee=amounts.bus_fee,
        special_fee=amounts.special_fee,
        special_fee_type=amounts.special_fee_type,
        total_amount=amounts.total_amount,
        added_by=current_user.username,
        class_name=student.class_name,
        division=student.division,
    )
    db.add(payment)
    await db.commit()
    await db.refresh(payment)
    logger.info(
        "Payment %s recorded for %s by %s: total %s (dev %s, bus %s, special %s)",
        payment.id,
        payment.admission_no,
        current_user.username,
        payment.total_amount,
        payment.development_fee,
        payment.bus_fee,
        payment.special_fee,
    )

    balance_after = calculate_balance(student, ledger + [payment], schedule)
    message = payment_message(
        payment.total_amount,
        payment.student_name,
        payment.admission_no,
        payment.payment_date,
        settings.school_short_name,
    )
    response = PaymentCreateResponse(payment=_payment_to_response(payment), balance=balance_after)
    return response, student.mobile or None, message


async def list_payments(
    db: AsyncSession,
    current_user: CurrentUser,
    class_name: Optional[str] = None,
    division: Optional[str] = None,
    on_date: Optional[date] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    student_id: Optional[UUID] = None,
    search: Optional[str] = None,
) -> List[PaymentResponse]:
    """Newest first. Teachers only see payments of their own class and division."""
    if not current_user.is_admin:
        if not current_user.class_name or not current_user.division:
            return []
        class_name = current_user.class_name
        division = current_user.division

    stmt = select(Payment)
    if student_id:
        stmt = stmt.where(Payment.student_id == student_id)
    if search and search.strip():
        term = f"%{search.strip()}%"
        stmt = stmt.where(or_(Payment.student_name.ilike(term), Payment.admission_no.ilike(term)))
    stmt = stmt.order_by(Payment.payment_date.desc())
    result = await db.execute(stmt)
    payments = filter_payments(
        result.scalars().all(),
        on_date=on_date,
        date_from=date_from,
        date_to=date_to,
        class_name=class_name or None,
        division=division.upper() if division else None,
    )
    return [_payment_to_response(p) for p in payments]


async def get_payment(
    db: AsyncSession,
    current_user: CurrentUser,
    payment_id: UUID,
) -> PaymentResponse:
    payment = await _get_payment(db, payment_id)
    ensure_class_access(current_user, payment.class_name, payment.division)
    return _payment_to_response(payment)


async def update_payment(
    db: AsyncSession,
    payment_id: UUID,
    payload: PaymentUpdate,
) -> PaymentResponse:
    """Admin correction of the amounts. Identity fields and payment_date are not editable."""
    payment = await _get_payment(db, payment_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in data.items():
        setattr(payment, field, value.strip() if isinstance(value, str) else to_amount(value))

    total = compute_total(payment.development_fee, payment.bus_fee, payment.special_fee)
    if total <= 0:
        raise ServiceError("Please enter at least one fee amount", status.HTTP_400_BAD_REQUEST)
    payment.total_amount = total

    await db.commit()
    await db.refresh(payment)
    logger.info("Payment %s corrected: total %s", payment.id, payment.total_amount)
    return _payment_to_response(payment)


async def delete_payment(db: AsyncSession, payment_id: UUID) -> None:
    payment = await _get_payment(db, payment_id)
    await db.delete(payment)
    await db.commit()
    logger.info("Payment %s deleted (%s, total %s)", payment_id, payment.admission_no, payment.total_amount)
