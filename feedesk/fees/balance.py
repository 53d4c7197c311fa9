"""Balance calculator.

Remaining balance per category is ``max(0, required - paid)``. Overpayment is
absorbed into the zero floor, and reported separately through the
``*_overpaid`` fields so it stays visible without changing the remaining
values. Special fees have no required amount and therefore no balance.
"""

from decimal import Decimal
from typing import Iterable, Optional, Protocol
from uuid import UUID

from pydantic import BaseModel, computed_field

from feedesk.fees.ledger import LedgerEntry, entries_for_student, paid_totals
from feedesk.fees.schedule import FeeSchedule

ZERO = Decimal("0")


class StudentLike(Protocol):
    id: UUID
    class_name: str
    division: str
    bus_stop: str


class FeeBalance(BaseModel):
    development_total: Decimal = ZERO
    development_paid: Decimal = ZERO
    development_balance: Decimal = ZERO
    development_overpaid: Decimal = ZERO
    bus_total: Decimal = ZERO
    bus_paid: Decimal = ZERO
    bus_balance: Decimal = ZERO
    bus_overpaid: Decimal = ZERO

    @computed_field
    @property
    def overpaid(self) -> bool:
        return self.development_overpaid > 0 or self.bus_overpaid > 0

    @property
    def has_remaining(self) -> bool:
        return self.development_balance > 0 or self.bus_balance > 0


def calculate_balance(
    student: Optional[StudentLike],
    ledger: Iterable[LedgerEntry],
    schedule: FeeSchedule,
) -> FeeBalance:
    if student is None:
        return FeeBalance()

    paid = paid_totals(entries_for_student(ledger, student.id))
    development_total = schedule.required_development(student.class_name, student.division)
    bus_total = schedule.required_bus(student.bus_stop)

    return FeeBalance(
        development_total=development_total,
        development_paid=paid.development,
        development_balance=max(ZERO, development_total - paid.development),
        development_overpaid=max(ZERO, paid.development - development_total),
        bus_total=bus_total,
        bus_paid=paid.bus,
        bus_balance=max(ZERO, bus_total - paid.bus),
        bus_overpaid=max(ZERO, paid.bus - bus_total),
    )


def calculate_student_balance(
    student_id: Optional[UUID],
    students: Iterable[StudentLike],
    ledger: Iterable[LedgerEntry],
    schedule: FeeSchedule,
) -> FeeBalance:
    """Balance by id; an unknown student yields all-zero balances."""
    student = next((s for s in students if s.id == student_id), None) if student_id else None
    return calculate_balance(student, ledger, schedule)
