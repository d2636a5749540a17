from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.models import PaymentRecord, Student


def _balance(response) -> dict:
    return response.json()["data"]["balance"]


def _assert_debt_balances(balance: dict) -> None:
    assert Decimal(balance["debt_amount"]) == (
        Decimal(balance["contract_amount"])
        - Decimal(balance["actual_amount"])
        - Decimal(balance["discount_amount"])
    )


async def _pay(client: AsyncClient, headers, student_id: int, amount: str):
    return await client.post(
        "/api/payments",
        json={
            "student_id": student_id,
            "amount": amount,
            "payment_date": "2025-03-01",
            "payment_method": "微信",
            "operator": "张会计",
        },
        headers=headers,
    )


@pytest.mark.asyncio
async def test_partial_then_full_payment(client: AsyncClient, admin_headers, make_class_type, make_student) -> None:
    ct = await make_class_type(contract_amount="2000.00")
    student = await make_student(class_type_id=ct["id"])
    assert Decimal(student["debt_amount"]) == Decimal("2000")
    assert student["payment_status"] == "未缴费"

    response = await _pay(client, admin_headers, student["id"], "1000.00")
    assert response.status_code == 200, response.text
    balance = _balance(response)
    assert balance["payment_status"] == "部分缴费"
    assert balance["enrollment_status"] == "报名部分缴费"
    assert Decimal(balance["debt_amount"]) == Decimal("1000")
    _assert_debt_balances(balance)

    response = await _pay(client, admin_headers, student["id"], "1000.00")
    balance = _balance(response)
    assert balance["payment_status"] == "已缴费"
    assert balance["enrollment_status"] == "报名已缴费"
    assert Decimal(balance["debt_amount"]) == Decimal("0")


@pytest.mark.asyncio
async def test_payment_then_delete_restores_state(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    ct = await make_class_type(contract_amount="3800.00")
    student = await make_student(class_type_id=ct["id"])

    response = await _pay(client, admin_headers, student["id"], "500.50")
    record_id = response.json()["data"]["record"]["id"]

    response = await client.delete(f"/api/payments/{record_id}", headers=admin_headers)
    assert response.status_code == 200, response.text
    balance = _balance(response)
    assert Decimal(balance["actual_amount"]) == Decimal("0")
    assert Decimal(balance["debt_amount"]) == Decimal("3800")
    assert balance["payment_status"] == "未缴费"
    assert balance["enrollment_status"] == "报名未缴费"


@pytest.mark.asyncio
async def test_discount_completes_payment(client: AsyncClient, admin_headers, make_class_type, make_student) -> None:
    ct = await make_class_type(contract_amount="1800.00")
    student = await make_student(class_type_id=ct["id"])
    await _pay(client, admin_headers, student["id"], "1600.00")

    response = await client.post(
        "/api/payments/discount",
        json={"student_id": student["id"], "amount": "200.00", "operator": "王校长"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["record"]["notes"] == "减免：费用减免"
    assert Decimal(data["record"]["amount"]) == Decimal("-200")
    assert data["record"]["record_type"] == "discount"
    assert data["balance"]["payment_status"] == "已缴费"
    assert Decimal(data["balance"]["debt_amount"]) == Decimal("0")


@pytest.mark.asyncio
async def test_discount_over_contract_rejected_without_side_effects(
    client: AsyncClient, admin_headers, make_class_type, make_student, db_session: AsyncSession
) -> None:
    ct = await make_class_type(contract_amount="1000.00")
    student = await make_student(class_type_id=ct["id"])
    ok = await client.post(
        "/api/payments/discount",
        json={"student_id": student["id"], "amount": "600.00", "operator": "王校长"},
        headers=admin_headers,
    )
    assert ok.status_code == 200

    response = await client.post(
        "/api/payments/discount",
        json={"student_id": student["id"], "amount": "400.01", "operator": "王校长"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "累计减免金额不能超过合同金额" in body["message"]

    rows = (
        await db_session.execute(select(PaymentRecord).where(PaymentRecord.student_id == student["id"]))
    ).scalars().all()
    assert len(rows) == 1
    row = await db_session.get(Student, student["id"])
    assert row.discount_amount == Decimal("600.00")


@pytest.mark.asyncio
async def test_refund_forces_refunded_status(client: AsyncClient, admin_headers, make_class_type, make_student) -> None:
    ct = await make_class_type(contract_amount="2000.00")
    student = await make_student(class_type_id=ct["id"])
    await _pay(client, admin_headers, student["id"], "2000.00")

    response = await client.post(
        "/api/payments/refund",
        json={"student_id": student["id"], "amount": "300.00", "operator": "张会计", "notes": "转校"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["record"]["notes"] == "退费：转校"
    assert data["record"]["payment_method"] == "其他"
    assert Decimal(data["record"]["amount"]) == Decimal("-300")
    assert data["balance"]["payment_status"] == "已退费"
    assert data["balance"]["enrollment_status"] == "已退费"
    assert Decimal(data["balance"]["actual_amount"]) == Decimal("1700")
    _assert_debt_balances(data["balance"])


@pytest.mark.asyncio
async def test_refund_more_than_actual_rejected(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    ct = await make_class_type(contract_amount="2000.00")
    student = await make_student(class_type_id=ct["id"])
    await _pay(client, admin_headers, student["id"], "500.00")

    response = await client.post(
        "/api/payments/refund",
        json={"student_id": student["id"], "amount": "500.01", "operator": "张会计"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "退费金额不能超过实收金额 ¥500.00"


@pytest.mark.asyncio
async def test_deleting_refund_restores_actual(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    ct = await make_class_type(contract_amount="2000.00")
    student = await make_student(class_type_id=ct["id"])
    await _pay(client, admin_headers, student["id"], "2000.00")
    refund = await client.post(
        "/api/payments/refund",
        json={"student_id": student["id"], "amount": "300.00", "operator": "张会计"},
        headers=admin_headers,
    )
    record_id = refund.json()["data"]["record"]["id"]

    response = await client.delete(f"/api/payments/{record_id}", headers=admin_headers)
    balance = _balance(response)
    assert Decimal(balance["actual_amount"]) == Decimal("2000")
    assert balance["payment_status"] == "已缴费"


@pytest.mark.asyncio
async def test_delete_payment_that_would_go_negative_rejected(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    ct = await make_class_type(contract_amount="2000.00")
    student = await make_student(class_type_id=ct["id"])
    payment = await _pay(client, admin_headers, student["id"], "500.00")
    await client.post(
        "/api/payments/refund",
        json={"student_id": student["id"], "amount": "500.00", "operator": "张会计"},
        headers=admin_headers,
    )

    response = await client.delete(
        f"/api/payments/{payment.json()['data']['record']['id']}", headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_invalid_amounts_rejected(client: AsyncClient, admin_headers, make_class_type, make_student) -> None:
    ct = await make_class_type()
    student = await make_student(class_type_id=ct["id"])

    for amount in ("0", "-10", "10.001"):
        response = await _pay(client, admin_headers, student["id"], amount)
        assert response.status_code == 400, amount
        assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_payment_for_missing_student(client: AsyncClient, admin_headers) -> None:
    response = await _pay(client, admin_headers, 999, "100.00")
    assert response.status_code == 404
    assert response.json()["message"] == "学员不存在"


@pytest.mark.asyncio
async def test_ledger_debts_and_statistics(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    ct = await make_class_type(contract_amount="3000.00")
    owing_more = await make_student(class_type_id=ct["id"], name="欠费多")
    owing_less = await make_student(class_type_id=ct["id"], name="欠费少")
    paid = await make_student(class_type_id=ct["id"], name="已缴清")
    await _pay(client, admin_headers, owing_less["id"], "2000.00")
    await _pay(client, admin_headers, paid["id"], "3000.00")

    debts = await client.get("/api/payments/debts", headers=admin_headers)
    assert debts.status_code == 200
    data = debts.json()["data"]
    assert data["pagination"]["total"] == 2
    assert [s["name"] for s in data["list"]] == ["欠费多", "欠费少"]

    ledger = await client.get(f"/api/payments/student/{owing_less['id']}", headers=admin_headers)
    assert len(ledger.json()["data"]) == 1

    stats = await client.get(f"/api/payments/statistics/{owing_less['id']}", headers=admin_headers)
    assert stats.status_code == 200
    assert stats.json()["data"]["payment_count"] == 1
    assert owing_more["payment_status"] == "未缴费"


@pytest.mark.asyncio
async def test_payment_applies_status_rule_to_disqualified_student(
    client: AsyncClient, admin_headers, make_class_type, make_student, db_session: AsyncSession
) -> None:
    ct = await make_class_type(contract_amount="2000.00")
    student = await make_student(class_type_id=ct["id"])
    row = await db_session.get(Student, student["id"])
    row.enrollment_status = "废考"
    await db_session.commit()

    response = await _pay(client, admin_headers, student["id"], "100.00")
    balance = _balance(response)
    assert balance["payment_status"] == "部分缴费"
    assert balance["enrollment_status"] == "报名部分缴费"


@pytest.mark.asyncio
async def test_refund_of_disqualified_student_marks_refunded(
    client: AsyncClient, admin_headers, make_class_type, make_student, db_session: AsyncSession
) -> None:
    ct = await make_class_type(contract_amount="2000.00")
    student = await make_student(class_type_id=ct["id"])
    await _pay(client, admin_headers, student["id"], "500.00")
    row = await db_session.get(Student, student["id"])
    row.enrollment_status = "废考"
    await db_session.commit()

    response = await client.post(
        "/api/payments/refund",
        json={"student_id": student["id"], "amount": "100.00", "operator": "张会计"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    balance = _balance(response)
    assert balance["payment_status"] == "已退费"
    assert balance["enrollment_status"] == "已退费"
    assert Decimal(balance["actual_amount"]) == Decimal("400")
    _assert_debt_balances(balance)
