"""Receipts service: assemble receipt batches from stored payments and current balances."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.api.v1.fee_config.service import load_fee_schedule
from feedesk.auth.rbac import ensure_class_access
from feedesk.auth.schemas import CurrentUser
from feedesk.core.config import settings
from feedesk.core.enums import ReceiptLayoutName
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import Payment, Student
from feedesk.fees.balance import FeeBalance, calculate_balance
from feedesk.fees.layouts import ReceiptLayout, get_layout, list_layouts
from feedesk.fees.ledger import filter_payments
from feedesk.fees.receipt import LayoutInfo, ReceiptBatch, SchoolHeader, build_batch, layout_info

from .schemas import BulkReceiptRequest

logger = logging.getLogger(__name__)


def school_header() -> SchoolHeader:
    return SchoolHeader(
        name=settings.school_name,
        subtitle=settings.school_subtitle,
        location=settings.school_location,
    )


def get_layouts() -> List[LayoutInfo]:
    return [layout_info(layout) for layout in list_layouts()]


async def _balances_for(db: AsyncSession, student_ids: Iterable[Optional[UUID]]) -> Dict[Optional[UUID], FeeBalance]:
    """Current balance of each referenced student. Deleted students are left out and print as zero."""
    ids = {sid for sid in student_ids if sid is not None}
    if not ids:
        return {}
    students = (await db.execute(select(Student).where(Student.id.in_(ids)))).scalars().all()
    ledger = (await db.execute(select(Payment).where(Payment.student_id.in_(ids)))).scalars().all()
    schedule = await load_fee_schedule(db)
    return {s.id: calculate_balance(s, ledger, schedule) for s in students}


async def get_receipt(
    db: AsyncSession,
    current_user: CurrentUser,
    payment_id: UUID,
    layout_name: ReceiptLayoutName = ReceiptLayoutName.A6,
) -> Tuple[ReceiptBatch, ReceiptLayout]:
    layout = get_layout(layout_name)
    result = await db.execute(select(Payment).where(Payment.id == payment_id))
    payment = result.scalar_one_or_none()
    if not payment:
        raise ServiceError("Payment not found", status.HTTP_404_NOT_FOUND)
    ensure_class_access(current_user, payment.class_name, payment.division)
    balances = await _balances_for(db, [payment.student_id])
    return build_batch([payment], balances, layout, school_header()), layout


async def get_bulk_receipts(
    db: AsyncSession,
    current_user: CurrentUser,
    request: BulkReceiptRequest,
) -> Tuple[ReceiptBatch, ReceiptLayout]:
    layout = get_layout(request.layout)
    class_name, division = request.class_name, request.division
    if not current_user.is_admin:
        if not current_user.class_name or not current_user.division:
            raise ServiceError("No class is assigned to this account", status.HTTP_403_FORBIDDEN)
        class_name, division = current_user.class_name, current_user.division

    result = await db.execute(select(Payment).order_by(Payment.payment_date))
    if request.on_date is not None:
        payments = filter_payments(
            result.scalars().all(),
            on_date=request.on_date,
            class_name=class_name or None,
            division=division.upper() if division else None,
        )
    else:
        payments = filter_payments(
            result.scalars().all(),
            date_from=request.date_from,
            date_to=request.date_to,
            class_name=class_name or None,
            division=division.upper() if division else None,
        )
    if not payments:
        raise ServiceError("No payments found for the selected criteria", status.HTTP_404_NOT_FOUND)

    balances = await _balances_for(db, [p.student_id for p in payments])
    batch = build_batch(payments, balances, layout, school_header())
    logger.info("Bulk receipts: %d payments on %d %s page(s)", len(payments), batch.page_count, layout.name.value)
    return batch, layout
