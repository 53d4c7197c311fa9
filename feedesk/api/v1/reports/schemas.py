"""Report schemas."""

from datetime import date
from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, Field

ZERO = Decimal("0")


class CollectionTotals(BaseModel):
    total_payments: int = 0
    development_fees: Decimal = ZERO
    bus_fees: Decimal = ZERO
    special_fees: Decimal = ZERO
    total_collection: Decimal = ZERO


class ClassReportRow(CollectionTotals):
    class_name: str
    division: str
    total_students: int = 0


class BusStopStudent(BaseModel):
    admission_no: str
    name: str
    class_name: str
    division: str


class BusStopReportRow(BaseModel):
    bus_stop: str
    total_students: int = 0
    bus_numbers: List[str] = Field(default_factory=list)
    trip_numbers: List[str] = Field(default_factory=list)
    class_summary: Dict[str, int] = Field(default_factory=dict, description='Students per "class-division"')
    students: List[BusStopStudent] = Field(default_factory=list)


class MonthlyReport(CollectionTotals):
    month: str
    daily_breakdown: Dict[date, Decimal] = Field(default_factory=dict)


class SummaryReport(BaseModel):
    total_students: int
    total_payments: int
    total_collection: Decimal
    today_payments: int
    today_collection: Decimal
