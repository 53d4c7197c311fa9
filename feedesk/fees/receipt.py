"""Receipt formatter: payment + balance snapshot -> structured document -> printable HTML."""

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol
from uuid import UUID

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel

from feedesk.core.enums import ReceiptLayoutName
from feedesk.fees.balance import FeeBalance
from feedesk.fees.layouts import ReceiptLayout
from feedesk.fees.ledger import local_day
from feedesk.fees.schedule import to_amount

RECEIPT_TITLE = "Fee Payment Receipt"


class PaymentLike(Protocol):
    id: UUID
    student_id: Optional[UUID]
    student_name: str
    admission_no: str
    development_fee: Decimal
    bus_fee: Decimal
    special_fee: Decimal
    special_fee_type: str
    total_amount: Decimal
    payment_date: datetime
    class_name: str
    division: str


class SchoolHeader(BaseModel):
    name: str
    subtitle: str
    location: str
    title: str = RECEIPT_TITLE


class ReceiptLine(BaseModel):
    label: str
    amount: Decimal


class ReceiptDocument(BaseModel):
    payment_id: UUID
    receipt_number: str
    date: date
    student_name: str
    admission_no: str
    class_division: str
    lines: List[ReceiptLine]
    total_paid: Decimal
    remaining_balance: List[ReceiptLine]


class LayoutInfo(BaseModel):
    name: ReceiptLayoutName
    label: str
    page_width_mm: float
    page_height_mm: float
    font_size_px: int
    per_page: int


class ReceiptBatch(BaseModel):
    layout: LayoutInfo
    header: SchoolHeader
    receipts: List[ReceiptDocument]
    page_count: int


def receipt_number(payment_id) -> str:
    return str(payment_id)[-6:]


def format_amount(value) -> str:
    """Indian rupee style used on receipts: 1,500 or 1,500.50."""
    amount = to_amount(value)
    if amount == amount.to_integral_value():
        return f"₹{amount:,.0f}"
    return f"₹{amount:,.2f}"


def format_date(value) -> str:
    return local_day(value).strftime("%d/%m/%Y")


def build_receipt(payment: PaymentLike, balance: FeeBalance) -> ReceiptDocument:
    lines: List[ReceiptLine] = []
    if to_amount(payment.development_fee) > 0:
        lines.append(ReceiptLine(label="Development Fee", amount=to_amount(payment.development_fee)))
    if to_amount(payment.bus_fee) > 0:
        lines.append(ReceiptLine(label="Bus Fee", amount=to_amount(payment.bus_fee)))
    if to_amount(payment.special_fee) > 0:
        lines.append(
            ReceiptLine(label=payment.special_fee_type or "Special Fee", amount=to_amount(payment.special_fee))
        )

    remaining: List[ReceiptLine] = []
    if balance.development_balance > 0:
        remaining.append(ReceiptLine(label="Development Fee", amount=balance.development_balance))
    if balance.bus_balance > 0:
        remaining.append(ReceiptLine(label="Bus Fee", amount=balance.bus_balance))

    return ReceiptDocument(
        payment_id=payment.id,
        receipt_number=receipt_number(payment.id),
        date=local_day(payment.payment_date),
        student_name=payment.student_name,
        admission_no=payment.admission_no,
        class_division=f"{payment.class_name}-{payment.division}",
        lines=lines,
        total_paid=to_amount(payment.total_amount),
        remaining_balance=remaining,
    )


def layout_info(layout: ReceiptLayout) -> LayoutInfo:
    return LayoutInfo(
        name=layout.name,
        label=layout.label,
        page_width_mm=layout.page_width_mm,
        page_height_mm=layout.page_height_mm,
        font_size_px=layout.font_size_px,
        per_page=layout.per_page,
    )


def paginate(receipts: List[ReceiptDocument], layout: ReceiptLayout) -> List[List[ReceiptDocument]]:
    return [receipts[i:i + layout.per_page] for i in range(0, len(receipts), layout.per_page)]


def build_batch(
    payments: Iterable[PaymentLike],
    balances: Dict[Optional[UUID], FeeBalance],
    layout: ReceiptLayout,
    header: SchoolHeader,
) -> ReceiptBatch:
    """Format many payments into one document. balances is keyed by student id; missing -> zero."""
    receipts = [build_receipt(p, balances.get(p.student_id) or FeeBalance()) for p in payments]
    return ReceiptBatch(
        layout=layout_info(layout),
        header=header,
        receipts=receipts,
        page_count=len(paginate(receipts, layout)),
    )


_env = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
)
_env.filters["amount"] = format_amount
_env.filters["ddmmyyyy"] = format_date


def render_html(batch: ReceiptBatch, layout: ReceiptLayout, title: Optional[str] = None) -> str:
    template = _env.get_template("receipts.html")
    return template.render(
        title=title or batch.header.title,
        header=batch.header,
        layout=layout,
        pages=paginate(batch.receipts, layout),
    )
