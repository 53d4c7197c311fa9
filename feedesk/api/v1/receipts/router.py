from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.dependencies import get_current_user
from feedesk.auth.schemas import CurrentUser
from feedesk.core.enums import ReceiptLayoutName
from feedesk.core.exceptions import ServiceError
from feedesk.db.session import get_db
from feedesk.fees.receipt import LayoutInfo, ReceiptBatch, render_html

from .schemas import BulkReceiptRequest
from . import service

router = APIRouter(prefix="/api/v1/receipts", tags=["receipts"])


@router.get(
    "/layouts",
    response_model=List[LayoutInfo],
    dependencies=[Depends(get_current_user)],
)
async def list_receipt_layouts() -> List[LayoutInfo]:
    return service.get_layouts()


@router.post("/bulk", response_model=ReceiptBatch)
async def bulk_receipts(
    payload: BulkReceiptRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReceiptBatch:
    try:
        batch, _ = await service.get_bulk_receipts(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return batch


@router.post("/bulk/print", response_class=HTMLResponse)
async def print_bulk_receipts(
    payload: BulkReceiptRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> HTMLResponse:
    try:
        batch, layout = await service.get_bulk_receipts(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return HTMLResponse(render_html(batch, layout, title=f"Fee Receipts ({len(batch.receipts)})"))


@router.get("/{payment_id}", response_model=ReceiptBatch)
async def get_receipt(
    payment_id: UUID,
    layout: ReceiptLayoutName = Query(ReceiptLayoutName.A6),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReceiptBatch:
    try:
        batch, _ = await service.get_receipt(db, current_user, payment_id, layout)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return batch


@router.get("/{payment_id}/print", response_class=HTMLResponse)
async def print_receipt(
    payment_id: UUID,
    layout: ReceiptLayoutName = Query(ReceiptLayoutName.A6),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> HTMLResponse:
    """Printable HTML sized for the chosen layout."""
    try:
        batch, receipt_layout = await service.get_receipt(db, current_user, payment_id, layout)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return HTMLResponse(render_html(batch, receipt_layout))
