from datetime import datetime, timedelta
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.models import Payment, Student


async def _pay(client: AsyncClient, headers, student: Student, **amounts) -> str:
    response = await client.post(
        "/api/v1/payments", json={"student_id": str(student.id), **amounts}, headers=headers
    )
    assert response.status_code == 201
    return response.json()["payment"]["id"]


@pytest.mark.asyncio
async def test_layouts(client: AsyncClient, teacher_headers) -> None:
    response = await client.get("/api/v1/receipts/layouts", headers=teacher_headers)
    assert response.status_code == 200
    assert [layout["name"] for layout in response.json()] == ["2x3-thermal", "3x5", "a6", "a4-9up"]


@pytest.mark.asyncio
async def test_single_receipt_document(client: AsyncClient, admin_headers, student: Student) -> None:
    payment_id = await _pay(client, admin_headers, student, development_fee=400, bus_fee=500)

    response = await client.get(f"/api/v1/receipts/{payment_id}", params={"layout": "3x5"}, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["layout"]["name"] == "3x5"
    assert data["header"]["title"] == "Fee Payment Receipt"
    assert data["page_count"] == 1
    receipt = data["receipts"][0]
    assert receipt["receipt_number"] == payment_id[-6:]
    assert receipt["class_division"] == "7-A"
    assert [line["label"] for line in receipt["lines"]] == ["Development Fee", "Bus Fee"]
    assert [line["label"] for line in receipt["remaining_balance"]] == ["Development Fee"]


@pytest.mark.asyncio
async def test_single_receipt_print(client: AsyncClient, admin_headers, student: Student) -> None:
    payment_id = await _pay(client, admin_headers, student, development_fee=1000)
    response = await client.get(f"/api/v1/receipts/{payment_id}/print", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "size: 105.0mm 148.0mm" in response.text
    assert "₹1,000" in response.text
    assert "Remaining Balance" in response.text


@pytest.mark.asyncio
async def test_unknown_receipt_is_404(client: AsyncClient, admin_headers) -> None:
    response = await client.get("/api/v1/receipts/00000000-0000-0000-0000-000000000000", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_teacher_cannot_print_other_class_receipt(
    client: AsyncClient, admin_headers, teacher_headers, other_class_student: Student
) -> None:
    payment_id = await _pay(client, admin_headers, other_class_student, development_fee=100)
    response = await client.get(f"/api/v1/receipts/{payment_id}", headers=teacher_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_bulk_receipts_by_date_and_class(
    client: AsyncClient, admin_headers, student: Student, other_class_student: Student
) -> None:
    for _ in range(10):
        await _pay(client, admin_headers, student, special_fee=10, special_fee_type="Exam")
    await _pay(client, admin_headers, other_class_student, development_fee=100)
    today = datetime.utcnow().date()

    response = await client.post(
        "/api/v1/receipts/bulk",
        json={"layout": "a4-9up", "date": today.isoformat(), "class_name": "7"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert len(data["receipts"]) == 10
    assert data["page_count"] == 2

    response = await client.post(
        "/api/v1/receipts/bulk/print",
        json={"layout": "a4-9up", "date_from": (today - timedelta(days=1)).isoformat()},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.text.count('class="receipt"') == 11


@pytest.mark.asyncio
async def test_bulk_receipts_empty_selection(client: AsyncClient, admin_headers, student: Student) -> None:
    await _pay(client, admin_headers, student, development_fee=100)
    yesterday = (datetime.utcnow() - timedelta(days=1)).date()
    response = await client.post(
        "/api/v1/receipts/bulk",
        json={"date": yesterday.isoformat()},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "No payments found for the selected criteria"


@pytest.mark.asyncio
async def test_bulk_receipts_date_range_includes_both_ends(
    client: AsyncClient, db_session: AsyncSession, admin_headers, student: Student
) -> None:
    payment_id = await _pay(client, admin_headers, student, development_fee=100)
    payment = (await db_session.execute(select(Payment).where(Payment.id == UUID(payment_id)))).scalar_one()
    payment.payment_date = datetime(2024, 6, 5, 16, 45)
    await db_session.commit()

    for criteria in (
        {"date_to": "2024-06-05"},
        {"date_from": "2024-06-05", "date_to": "2024-06-05"},
        {"date_from": "2024-06-01", "date_to": "2024-06-05"},
    ):
        response = await client.post("/api/v1/receipts/bulk", json=criteria, headers=admin_headers)
        assert response.status_code == 200, criteria
        assert [r["payment_id"] for r in response.json()["receipts"]] == [payment_id]

    response = await client.post("/api/v1/receipts/bulk", json={"date_to": "2024-06-04"}, headers=admin_headers)
    assert response.status_code == 404
