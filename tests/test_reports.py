from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from feedesk.api.v1.reports.service import monthly_report, parse_month, summary_report
from feedesk.core.exceptions import ServiceError
from feedesk.core.config import settings
from feedesk.core.models import Student
from feedesk.fees.ledger import filter_payments, local_day


def make_payment(total, paid_on):
    return SimpleNamespace(
        student_id=None,
        development_fee=Decimal(total),
        bus_fee=Decimal(0),
        special_fee=Decimal(0),
        total_amount=Decimal(total),
        payment_date=paid_on,
        class_name="7",
        division="A",
    )


def test_parse_month_bounds() -> None:
    assert parse_month("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert parse_month("2023-12") == (date(2023, 12, 1), date(2023, 12, 31))
    with pytest.raises(ServiceError):
        parse_month(None)
    with pytest.raises(ServiceError):
        parse_month("June 2024")


def test_monthly_report_daily_breakdown() -> None:
    payments = [
        make_payment(100, datetime(2024, 6, 1, 9)),
        make_payment(200, datetime(2024, 6, 1, 15)),
        make_payment(300, datetime(2024, 6, 30, 23, 59)),
        make_payment(999, datetime(2024, 7, 1, 0, 0)),
    ]
    report = monthly_report(payments, "2024-06")
    assert report.total_payments == 3
    assert report.total_collection == Decimal("600")
    assert report.daily_breakdown == {date(2024, 6, 1): Decimal("300"), date(2024, 6, 30): Decimal("300")}


def test_summary_counts_today() -> None:
    today = date(2024, 6, 5)
    payments = [make_payment(100, datetime(2024, 6, 5, 8)), make_payment(50, datetime(2024, 6, 4, 8))]
    report = summary_report([object(), object()], payments, today=today)
    assert (report.total_students, report.total_payments, report.today_payments) == (2, 2, 1)
    assert report.total_collection == Decimal("150")
    assert report.today_collection == Decimal("100")


def test_local_day_converts_to_school_timezone() -> None:
    # 20:00 UTC on 30 June is 01:30 on 1 July in India
    assert local_day(datetime(2024, 6, 30, 20, 0), "Asia/Kolkata") == date(2024, 7, 1)
    assert local_day(datetime(2024, 6, 30, 20, 0), "UTC") == date(2024, 6, 30)
    assert local_day(date(2024, 6, 30), "Asia/Kolkata") == date(2024, 6, 30)


def test_payment_days_follow_configured_timezone(monkeypatch) -> None:
    monkeypatch.setattr(settings, "timezone", "Asia/Kolkata")
    early_morning = make_payment(100, datetime(2024, 6, 30, 20, 0))
    afternoon = make_payment(50, datetime(2024, 6, 30, 10, 0))

    june = monthly_report([early_morning, afternoon], "2024-06")
    assert june.total_collection == Decimal("50")
    july = monthly_report([early_morning, afternoon], "2024-07")
    assert july.daily_breakdown == {date(2024, 7, 1): Decimal("100")}
    assert filter_payments([early_morning, afternoon], on_date=date(2024, 7, 1)) == [early_morning]


@pytest.mark.asyncio
async def test_class_wise_and_bus_stop_reports(
    client: AsyncClient, admin_headers, student: Student, other_class_student: Student
) -> None:
    await client.post(
        "/api/v1/payments",
        json={"student_id": str(student.id), "development_fee": 400, "bus_fee": 500},
        headers=admin_headers,
    )

    response = await client.get("/api/v1/reports/class-wise", headers=admin_headers)
    assert response.status_code == 200
    rows = response.json()
    assert [(r["class_name"], r["division"]) for r in rows] == [("7", "A"), ("11", "B")]
    assert rows[0]["total_students"] == 1
    assert rows[0]["total_payments"] == 1
    assert Decimal(rows[0]["total_collection"]) == Decimal("900")
    assert rows[1]["total_payments"] == 0

    response = await client.get("/api/v1/reports/bus-stop", headers=admin_headers)
    assert response.status_code == 200
    stops = response.json()
    assert [s["bus_stop"] for s in stops] == ["Main Gate"]
    assert stops[0]["bus_numbers"] == ["KL-11-1234"]
    assert stops[0]["class_summary"] == {"7-A": 1}


@pytest.mark.asyncio
async def test_monthly_report_requires_month(client: AsyncClient, admin_headers) -> None:
    response = await client.get("/api/v1/reports/monthly", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Month parameter is required for monthly reports"

    month = datetime.utcnow().strftime("%Y-%m")
    response = await client.get("/api/v1/reports/monthly", params={"month": month}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["month"] == month


@pytest.mark.asyncio
async def test_summary_and_access(client: AsyncClient, admin_headers, teacher_headers, student: Student) -> None:
    response = await client.get("/api/v1/reports/summary", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["total_students"] == 1

    response = await client.get("/api/v1/reports/summary", headers=teacher_headers)
    assert response.status_code == 403

    response = await client.get("/api/v1/reports/yearly", headers=admin_headers)
    assert response.status_code == 422
