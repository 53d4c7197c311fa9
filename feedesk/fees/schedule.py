"""Fee schedule: required development fee per class key and bus fee per stop."""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Mapping

# Classes that charge development fee per division instead of per class
DIVISION_FEE_CLASSES = ("11", "12")

CLASSES = tuple(str(n) for n in range(1, 13))
DIVISIONS = ("A", "B", "C", "D", "E")


def resolve_fee_key(class_name: str, division: str) -> str:
    """Key into development_fees: "11-B" for classes 11/12, plain class otherwise."""
    if class_name in DIVISION_FEE_CLASSES:
        return f"{class_name}-{division}"
    return class_name


CENT = Decimal("0.01")


def to_amount(value) -> Decimal:
    """Money as Decimal rounded to paise, matching the Numeric(12, 2) columns."""
    if value is None:
        return Decimal("0.00")
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeSchedule:
    development_fees: Mapping[str, Decimal] = field(default_factory=dict)
    bus_stops: Mapping[str, Decimal] = field(default_factory=dict)

    def required_development(self, class_name: str, division: str) -> Decimal:
        # missing entry -> 0
        return to_amount(self.development_fees.get(resolve_fee_key(class_name, division)))

    def required_bus(self, bus_stop: str) -> Decimal:
        return to_amount(self.bus_stops.get(bus_stop))


def _default_development_fees() -> Dict[str, Decimal]:
    fees: Dict[str, Decimal] = {}
    for n in range(1, 11):
        fees[str(n)] = Decimal(400 + n * 100)
    for base, class_name in ((1500, "11"), (1600, "12")):
        for i, division in enumerate(DIVISIONS):
            fees[f"{class_name}-{division}"] = Decimal(base + i * 100)
    return fees


DEFAULT_DEVELOPMENT_FEES: Dict[str, Decimal] = _default_development_fees()

DEFAULT_BUS_STOPS: Dict[str, Decimal] = {
    "Main Gate": Decimal(800),
    "Market Square": Decimal(900),
    "Railway Station": Decimal(1000),
    "City Center": Decimal(850),
    "Park Avenue": Decimal(750),
    "School Road": Decimal(700),
}
