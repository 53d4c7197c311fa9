"""Payment ledger helpers: per-student filtering, paid-to-date totals and list predicates."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional, Protocol, TypeVar, Union
from uuid import UUID
from zoneinfo import ZoneInfo

from feedesk.core.config import settings
from feedesk.fees.schedule import to_amount


class LedgerEntry(Protocol):
    student_id: Optional[UUID]
    development_fee: Decimal
    bus_fee: Decimal
    special_fee: Decimal
    payment_date: datetime
    class_name: str
    division: str


E = TypeVar("E", bound=LedgerEntry)


@dataclass(frozen=True)
class PaidTotals:
    development: Decimal = Decimal("0")
    bus: Decimal = Decimal("0")
    special: Decimal = Decimal("0")


def compute_total(development_fee, bus_fee, special_fee) -> Decimal:
    return to_amount(development_fee) + to_amount(bus_fee) + to_amount(special_fee)


def entries_for_student(ledger: Iterable[E], student_id: UUID) -> List[E]:
    return [p for p in ledger if p.student_id == student_id]


def paid_totals(entries: Iterable[LedgerEntry]) -> PaidTotals:
    development = Decimal("0")
    bus = Decimal("0")
    special = Decimal("0")
    for p in entries:
        development += to_amount(p.development_fee)
        bus += to_amount(p.bus_fee)
        special += to_amount(p.special_fee)
    return PaidTotals(development=development, bus=bus, special=special)


def school_zone(tz_name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz_name or settings.timezone)


def local_day(value: Union[date, datetime], tz_name: Optional[str] = None) -> date:
    """Calendar day of a timestamp in the school's timezone. Naive timestamps are taken as UTC."""
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(school_zone(tz_name)).date()


def local_today(tz_name: Optional[str] = None) -> date:
    return datetime.now(school_zone(tz_name)).date()


def filter_payments(
    ledger: Iterable[E],
    *,
    on_date: Optional[date] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    class_name: Optional[str] = None,
    division: Optional[str] = None,
) -> List[E]:
    """Plain predicate over the ledger; every given criterion must match. Date range is inclusive."""
    selected: List[E] = []
    for p in ledger:
        day = local_day(p.payment_date)
        if on_date is not None and day != on_date:
            continue
        if date_from is not None and day < date_from:
            continue
        if date_to is not None and day > date_to:
            continue
        if class_name is not None and p.class_name != class_name:
            continue
        if division is not None and p.division != division:
            continue
        selected.append(p)
    return selected
