from decimal import Decimal
from urllib.parse import parse_qs

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.models import NotificationSetting, Payment, Student


async def _pay(client: AsyncClient, headers, student_id, **amounts):
    return await client.post("/api/v1/payments", json={"student_id": str(student_id), **amounts}, headers=headers)


@pytest.mark.asyncio
async def test_payment_scenario_reduces_balance(client: AsyncClient, admin_headers, student: Student) -> None:
    balance = await client.get(f"/api/v1/students/{student.id}/balance", headers=admin_headers)
    assert balance.status_code == 200
    assert Decimal(balance.json()["development_balance"]) == Decimal("1000")
    assert Decimal(balance.json()["bus_balance"]) == Decimal("500")

    response = await _pay(client, admin_headers, student.id, development_fee=400, bus_fee=500)
    assert response.status_code == 201
    data = response.json()
    assert Decimal(data["payment"]["total_amount"]) == Decimal("900")
    assert data["payment"]["added_by"] == "admin"
    assert data["payment"]["class_name"] == "7"
    assert data["payment"]["student_name"] == "Anu Joseph"
    assert Decimal(data["balance"]["development_balance"]) == Decimal("600")
    assert Decimal(data["balance"]["bus_balance"]) == Decimal("0")


@pytest.mark.asyncio
async def test_over_entry_is_clamped(client: AsyncClient, admin_headers, student: Student) -> None:
    await _pay(client, admin_headers, student.id, development_fee=400, bus_fee=500)
    response = await _pay(client, admin_headers, student.id, development_fee=800)
    assert response.status_code == 201
    payment = response.json()["payment"]
    assert Decimal(payment["development_fee"]) == Decimal("600")
    assert Decimal(payment["total_amount"]) == Decimal("600")
    assert Decimal(response.json()["balance"]["development_balance"]) == 0


@pytest.mark.asyncio
async def test_special_fee_only_payment(client: AsyncClient, admin_headers, student: Student) -> None:
    response = await _pay(client, admin_headers, student.id, special_fee=300, special_fee_type="Lab Fee")
    assert response.status_code == 201
    data = response.json()
    assert Decimal(data["payment"]["total_amount"]) == Decimal("300")
    assert data["payment"]["special_fee_type"] == "Lab Fee"
    assert Decimal(data["balance"]["development_balance"]) == Decimal("1000")
    assert Decimal(data["balance"]["bus_balance"]) == Decimal("500")


@pytest.mark.asyncio
async def test_every_stored_payment_totals_its_parts(
    client: AsyncClient, db_session: AsyncSession, admin_headers, student: Student
) -> None:
    await _pay(client, admin_headers, student.id, development_fee=250, bus_fee=100)
    await _pay(client, admin_headers, student.id, development_fee=5000, special_fee=75, special_fee_type="Exam")
    await _pay(client, admin_headers, student.id, bus_fee=1000)

    payments = (await db_session.execute(select(Payment))).scalars().all()
    assert len(payments) == 3
    for p in payments:
        assert p.total_amount == p.development_fee + p.bus_fee + p.special_fee


@pytest.mark.asyncio
async def test_rejects_missing_student_and_empty_payment(client: AsyncClient, admin_headers, student: Student) -> None:
    response = await client.post("/api/v1/payments", json={"development_fee": 100}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Please select a student"

    response = await _pay(client, admin_headers, student.id, development_fee=0, bus_fee=0)
    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter at least one fee amount"


@pytest.mark.asyncio
async def test_fully_paid_student_cannot_be_charged_again(client: AsyncClient, admin_headers, student: Student) -> None:
    await _pay(client, admin_headers, student.id, development_fee=1000, bus_fee=500)
    response = await _pay(client, admin_headers, student.id, development_fee=100)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_teacher_records_payment_for_own_class(client: AsyncClient, teacher_headers, student: Student) -> None:
    response = await _pay(client, teacher_headers, student.id, development_fee=100)
    assert response.status_code == 201
    assert response.json()["payment"]["added_by"] == "class7a"


@pytest.mark.asyncio
async def test_teacher_cannot_pay_for_other_class(
    client: AsyncClient, teacher_headers, other_class_student: Student
) -> None:
    response = await _pay(client, teacher_headers, other_class_student.id, development_fee=100)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_teacher_cannot_collect_special_fee(client: AsyncClient, teacher_headers, student: Student) -> None:
    response = await _pay(client, teacher_headers, student.id, special_fee=300, special_fee_type="Lab Fee")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_payment_requires_authentication(client: AsyncClient, student: Student) -> None:
    response = await client.post("/api/v1/payments", json={"student_id": str(student.id), "development_fee": 100})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_payment_notifies_configured_channels(
    client: AsyncClient, db_session: AsyncSession, admin_headers, student: Student, provider_requests
) -> None:
    db_session.add(
        NotificationSetting(
            channel="sms",
            provider="twilio",
            credentials={"account_sid": "AC1", "auth_token": "tok", "phone_number": "+15550001"},
        )
    )
    await db_session.commit()

    response = await _pay(client, admin_headers, student.id, development_fee=1000)
    assert response.status_code == 201

    # WhatsApp is not configured, so only the SMS goes out
    assert len(provider_requests) == 1
    body = {k: v[0] for k, v in parse_qs(provider_requests[0].content.decode()).items()}
    assert body["To"] == "+919876543210"
    assert body["Body"].startswith("Dear Parent, Payment of ₹1,000 received for Anu Joseph (A100).")
    assert body["Body"].endswith("Thank you! - Sarvodaya School")


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_payment(
    client: AsyncClient,
    db_session: AsyncSession,
    admin_headers,
    student: Student,
    provider_requests,
    provider_status,
) -> None:
    db_session.add(NotificationSetting(channel="whatsapp", provider="callmebot", credentials={"api_key": "k"}))
    await db_session.commit()
    provider_status["code"] = 500

    response = await _pay(client, admin_headers, student.id, bus_fee=500)
    assert response.status_code == 201
    assert len(provider_requests) == 1
    stored = (await db_session.execute(select(Payment))).scalars().all()
    assert len(stored) == 1


@pytest.mark.asyncio
async def test_list_filters_and_teacher_scope(
    client: AsyncClient, admin_headers, teacher_headers, student: Student, other_class_student: Student
) -> None:
    await _pay(client, admin_headers, student.id, development_fee=100)
    await _pay(client, admin_headers, other_class_student.id, development_fee=200)

    all_payments = await client.get("/api/v1/payments", headers=admin_headers)
    assert len(all_payments.json()) == 2

    by_class = await client.get("/api/v1/payments", params={"class_name": "11", "division": "b"}, headers=admin_headers)
    assert [p["admission_no"] for p in by_class.json()] == ["B200"]

    by_search = await client.get("/api/v1/payments", params={"search": "anu"}, headers=admin_headers)
    assert [p["admission_no"] for p in by_search.json()] == ["A100"]

    teacher_view = await client.get("/api/v1/payments", params={"class_name": "11"}, headers=teacher_headers)
    assert [p["admission_no"] for p in teacher_view.json()] == ["A100"]


@pytest.mark.asyncio
async def test_admin_correction_recomputes_total(client: AsyncClient, admin_headers, teacher_headers, student: Student) -> None:
    created = await _pay(client, admin_headers, student.id, development_fee=400, bus_fee=500)
    payment_id = created.json()["payment"]["id"]

    forbidden = await client.put(f"/api/v1/payments/{payment_id}", json={"bus_fee": 0}, headers=teacher_headers)
    assert forbidden.status_code == 403

    response = await client.put(f"/api/v1/payments/{payment_id}", json={"bus_fee": 250}, headers=admin_headers)
    assert response.status_code == 200
    assert Decimal(response.json()["total_amount"]) == Decimal("650")

    response = await client.delete(f"/api/v1/payments/{payment_id}", headers=admin_headers)
    assert response.status_code == 204
    response = await client.get(f"/api/v1/payments/{payment_id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_stored_total_matches_parts_for_sub_paise_amounts(
    client: AsyncClient, db_session: AsyncSession, admin_headers, student: Student
) -> None:
    response = await _pay(client, admin_headers, student.id, development_fee="0.005", bus_fee="0.005")
    assert response.status_code == 201

    payment = (await db_session.execute(select(Payment))).scalar_one()
    await db_session.refresh(payment)
    assert payment.development_fee == Decimal("0.01")
    assert payment.bus_fee == Decimal("0.01")
    assert payment.total_amount == payment.development_fee + payment.bus_fee + payment.special_fee

    corrected = await client.put(
        f"/api/v1/payments/{payment.id}", json={"special_fee": "2.499"}, headers=admin_headers
    )
    assert corrected.status_code == 200
    data = corrected.json()
    assert Decimal(data["special_fee"]) == Decimal("2.50")
    assert Decimal(data["total_amount"]) == Decimal("2.52")


@pytest.mark.asyncio
async def test_special_fee_without_type_prints_default_label(
    client: AsyncClient, admin_headers, student: Student
) -> None:
    response = await _pay(client, admin_headers, student.id, special_fee=150)
    assert response.status_code == 201
    payment_id = response.json()["payment"]["id"]

    receipt = await client.get(f"/api/v1/receipts/{payment_id}", headers=admin_headers)
    assert receipt.status_code == 200
    lines = receipt.json()["receipts"][0]["lines"]
    assert [line["label"] for line in lines] == ["Special Fee"]
