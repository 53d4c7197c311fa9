"""Reports: aggregations over students and the payment ledger."""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple, Union

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.enums import ReportType
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import Payment, Student
from feedesk.fees.ledger import filter_payments, local_day, local_today
from feedesk.fees.schedule import to_amount

from .schemas import (
    BusStopReportRow,
    BusStopStudent,
    ClassReportRow,
    CollectionTotals,
    MonthlyReport,
    SummaryReport,
)

Report = Union[List[ClassReportRow], List[BusStopReportRow], MonthlyReport, SummaryReport]


def _class_key(class_name: str, division: str) -> Tuple[int, str]:
    try:
        return int(class_name), division
    except (TypeError, ValueError):
        return 0, division


def _add_payment(totals: CollectionTotals, p: Payment) -> None:
    totals.total_payments += 1
    totals.development_fees += to_amount(p.development_fee)
    totals.bus_fees += to_amount(p.bus_fee)
    totals.special_fees += to_amount(p.special_fee)
    totals.total_collection += to_amount(p.total_amount)


def class_wise_report(students: Iterable[Student], payments: Iterable[Payment]) -> List[ClassReportRow]:
    """Students and collections per class-division. Payments are grouped by their recorded class."""
    rows: Dict[Tuple[str, str], ClassReportRow] = {}

    def _row(class_name: str, division: str) -> ClassReportRow:
        key = (class_name, division)
        if key not in rows:
            rows[key] = ClassReportRow(class_name=class_name, division=division)
        return rows[key]

    for s in students:
        _row(s.class_name, s.division).total_students += 1
    for p in payments:
        _add_payment(_row(p.class_name, p.division), p)
    return [rows[k] for k in sorted(rows, key=lambda k: _class_key(*k))]


def bus_stop_report(students: Iterable[Student]) -> List[BusStopReportRow]:
    rows: Dict[str, BusStopReportRow] = {}
    for s in students:
        if not s.bus_stop:
            continue
        row = rows.setdefault(s.bus_stop, BusStopReportRow(bus_stop=s.bus_stop))
        row.total_students += 1
        row.students.append(
            BusStopStudent(admission_no=s.admission_no, name=s.name, class_name=s.class_name, division=s.division)
        )
        if s.bus_number and s.bus_number not in row.bus_numbers:
            row.bus_numbers.append(s.bus_number)
        if s.trip_number and s.trip_number not in row.trip_numbers:
            row.trip_numbers.append(s.trip_number)
        class_division = f"{s.class_name}-{s.division}"
        row.class_summary[class_division] = row.class_summary.get(class_division, 0) + 1
    return [rows[k] for k in sorted(rows)]


def parse_month(month: Optional[str]) -> Tuple[date, date]:
    """First and last day of a ``YYYY-MM`` month."""
    if not month:
        raise ServiceError("Month parameter is required for monthly reports", status.HTTP_400_BAD_REQUEST)
    try:
        first = datetime.strptime(month, "%Y-%m").date()
    except ValueError:
        raise ServiceError("Month must be in YYYY-MM format", status.HTTP_400_BAD_REQUEST)
    next_month = date(first.year + first.month // 12, first.month % 12 + 1, 1)
    return first, date.fromordinal(next_month.toordinal() - 1)


def monthly_report(payments: Iterable[Payment], month: Optional[str]) -> MonthlyReport:
    first, last = parse_month(month)
    report = MonthlyReport(month=first.strftime("%Y-%m"))
    for p in filter_payments(payments, date_from=first, date_to=last):
        _add_payment(report, p)
        day = local_day(p.payment_date)
        report.daily_breakdown[day] = report.daily_breakdown.get(day, to_amount(0)) + to_amount(p.total_amount)
    report.daily_breakdown = dict(sorted(report.daily_breakdown.items()))
    return report


def summary_report(
    students: Iterable[Student],
    payments: Iterable[Payment],
    today: Optional[date] = None,
) -> SummaryReport:
    payments = list(payments)
    today = today or local_today()
    todays = filter_payments(payments, on_date=today)
    return SummaryReport(
        total_students=len(list(students)),
        total_payments=len(payments),
        total_collection=sum((to_amount(p.total_amount) for p in payments), to_amount(0)),
        today_payments=len(todays),
        today_collection=sum((to_amount(p.total_amount) for p in todays), to_amount(0)),
    )


async def build_report(db: AsyncSession, report_type: ReportType, month: Optional[str] = None) -> Report:
    if report_type == ReportType.MONTHLY:
        parse_month(month)
    students = (await db.execute(select(Student))).scalars().all()
    if report_type == ReportType.BUS_STOP:
        return bus_stop_report(students)
    payments = (await db.execute(select(Payment))).scalars().all()
    if report_type == ReportType.CLASS_WISE:
        return class_wise_report(students, payments)
    if report_type == ReportType.MONTHLY:
        return monthly_report(payments, month)
    return summary_report(students, payments)
