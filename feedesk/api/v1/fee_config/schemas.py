"""Fee configuration schemas."""

from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator


def _non_negative(values: Optional[Dict[str, Decimal]]) -> Optional[Dict[str, Decimal]]:
    if values is None:
        return values
    for key, amount in values.items():
        if not key.strip():
            raise ValueError("fee key must not be empty")
        if amount < 0:
            raise ValueError(f"fee for {key} cannot be negative")
    return values


class FeeScheduleResponse(BaseModel):
    """Development fees by class key ("7", "11-B") and bus fees by stop name."""

    development_fees: Dict[str, Decimal] = Field(default_factory=dict)
    bus_stops: Dict[str, Decimal] = Field(default_factory=dict)


class FeeScheduleUpdate(BaseModel):
    """Partial update: only the given keys are upserted; omitted keys are kept."""

    development_fees: Optional[Dict[str, Decimal]] = None
    bus_stops: Optional[Dict[str, Decimal]] = None

    @field_validator("development_fees", "bus_stops")
    @classmethod
    def validate_amounts(cls, v: Optional[Dict[str, Decimal]]) -> Optional[Dict[str, Decimal]]:
        return _non_negative(v)


class FeeScheduleUpdateResult(BaseModel):
    success: bool = True
    updated: int


class BusStopImportResult(BaseModel):
    imported: int
    skipped: int
