"""Payment entry validation.

Development and bus amounts are clamped into ``[0, remaining]`` as they are
entered, so an over-entry is reduced rather than refused. Special fees are
only floored at zero.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from fastapi import status

from feedesk.core.exceptions import ServiceError
from feedesk.fees.balance import FeeBalance
from feedesk.fees.ledger import compute_total
from feedesk.fees.schedule import to_amount

ZERO = Decimal("0")


@dataclass(frozen=True)
class PaymentAmounts:
    development_fee: Decimal
    bus_fee: Decimal
    special_fee: Decimal
    special_fee_type: str

    @property
    def total_amount(self) -> Decimal:
        return compute_total(self.development_fee, self.bus_fee, self.special_fee)


def clamp_amount(entered, remaining) -> Decimal:
    return max(ZERO, min(to_amount(entered), to_amount(remaining)))


def clamp_entry(
    balance: FeeBalance,
    development_fee=ZERO,
    bus_fee=ZERO,
    special_fee=ZERO,
    special_fee_type: Optional[str] = None,
) -> PaymentAmounts:
    return PaymentAmounts(
        development_fee=clamp_amount(development_fee, balance.development_balance),
        bus_fee=clamp_amount(bus_fee, balance.bus_balance),
        special_fee=max(ZERO, to_amount(special_fee)),
        special_fee_type=(special_fee_type or "").strip(),
    )


def validate_entry(
    student_selected: bool,
    amounts: PaymentAmounts,
    allow_special_fee: bool = True,
) -> PaymentAmounts:
    """Reject a payment that cannot be committed. Raises ServiceError; returns amounts unchanged."""
    if not student_selected:
        raise ServiceError("Please select a student", status.HTTP_400_BAD_REQUEST)
    if amounts.special_fee > 0 and not allow_special_fee:
        raise ServiceError("Only admin can collect special fees", status.HTTP_403_FORBIDDEN)
    if amounts.total_amount <= 0:
        raise ServiceError("Please enter at least one fee amount", status.HTTP_400_BAD_REQUEST)
    return amounts
