from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient

from drivingschool.core.id_card import extract_birth_info, validate_id_card


def test_validate_id_card() -> None:
    assert validate_id_card("11010519491231002X")
    assert validate_id_card("110101199003070011")
    assert not validate_id_card("110101199003070012")
    assert not validate_id_card("11010119900307001")
    assert not validate_id_card("A10101199003070011")


def test_extract_birth_info() -> None:
    birth, age = extract_birth_info("110101199003070011", today=date(2025, 3, 6))
    assert birth == date(1990, 3, 7)
    assert age == 34
    _, age = extract_birth_info("110101199003070011", today=date(2025, 3, 7))
    assert age == 35


@pytest.mark.asyncio
async def test_create_student_snapshots_contract(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    ct = await make_class_type(contract_amount="3800.00")
    student = await make_student(class_type_id=ct["id"], id_card="110101199003070011")

    assert Decimal(student["contract_amount"]) == Decimal("3800")
    assert Decimal(student["debt_amount"]) == Decimal("3800")
    assert student["payment_status"] == "未缴费"
    assert student["birth_date"] == "1990-03-07"
    assert student["class_type_name"] == "C1普通班"
    assert student["registrar_name"] == "admin"


@pytest.mark.asyncio
async def test_price_change_keeps_existing_contracts(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    ct = await make_class_type(contract_amount="3800.00")
    enrolled = await make_student(class_type_id=ct["id"])

    response = await client.put(
        f"/api/class-types/{ct['id']}",
        json={"contract_amount": "4200.00", "price_change_notes": "春季调价"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["price_changed"] is True
    assert Decimal(data["old_price"]) == Decimal("3800")

    history = await client.get(f"/api/class-types/{ct['id']}/price-history", headers=admin_headers)
    entries = history.json()["data"]["history"]
    assert len(entries) == 1
    assert Decimal(entries[0]["contract_amount"]) == Decimal("3800")
    assert entries[0]["notes"] == "春季调价"

    unchanged = await client.get(f"/api/students/{enrolled['id']}", headers=admin_headers)
    assert Decimal(unchanged.json()["data"]["contract_amount"]) == Decimal("3800")

    newcomer = await make_student(class_type_id=ct["id"])
    assert Decimal(newcomer["contract_amount"]) == Decimal("4200")


@pytest.mark.asyncio
async def test_duplicate_and_invalid_id_card(client: AsyncClient, admin_headers, make_student) -> None:
    await make_student(id_card="110101199003070038")

    duplicate = await client.post(
        "/api/students",
        json={"name": "重复", "id_card": "110101199003070038", "phone": "13900000000", "gender": "女"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "该身份证号已存在"

    invalid = await client.post(
        "/api/students",
        json={"name": "错误", "id_card": "110101199003070039", "phone": "13900000000", "gender": "女"},
        headers=admin_headers,
    )
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "身份证号格式不正确"


@pytest.mark.asyncio
async def test_engine_owned_status_cannot_be_set_directly(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    ct = await make_class_type()
    student = await make_student(class_type_id=ct["id"])

    response = await client.put(
        f"/api/students/{student['id']}", json={"enrollment_status": "报名已缴费"}, headers=admin_headers
    )
    assert response.status_code == 400

    response = await client.put(
        f"/api/students/{student['id']}", json={"enrollment_status": "预约报名"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["enrollment_status"] == "预约报名"


@pytest.mark.asyncio
async def test_status_locked_after_payment(client: AsyncClient, admin_headers, make_class_type, make_student) -> None:
    ct = await make_class_type(contract_amount="2000.00")
    student = await make_student(class_type_id=ct["id"])
    await client.post(
        "/api/payments",
        json={
            "student_id": student["id"],
            "amount": "100.00",
            "payment_date": "2025-03-01",
            "payment_method": "现金",
            "operator": "张会计",
        },
        headers=admin_headers,
    )

    response = await client.put(
        f"/api/students/{student['id']}", json={"enrollment_status": "咨询中"}, headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_class_type_change_before_enrollment_resnapshots(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    cheap = await make_class_type(name="经济班", contract_amount="3000.00")
    vip = await make_class_type(name="VIP班", contract_amount="5000.00")
    consulting = await make_student(class_type_id=cheap["id"], enrollment_status="咨询中")
    enrolled = await make_student(class_type_id=cheap["id"])

    response = await client.put(
        f"/api/students/{consulting['id']}", json={"class_type_id": vip["id"]}, headers=admin_headers
    )
    data = response.json()["data"]
    assert Decimal(data["contract_amount"]) == Decimal("5000")
    assert Decimal(data["debt_amount"]) == Decimal("5000")

    response = await client.put(
        f"/api/students/{enrolled['id']}", json={"class_type_id": vip["id"]}, headers=admin_headers
    )
    data = response.json()["data"]
    assert data["class_type_id"] == vip["id"]
    assert Decimal(data["contract_amount"]) == Decimal("3000")


@pytest.mark.asyncio
async def test_class_type_in_use_cannot_be_deleted(
    client: AsyncClient, admin_headers, make_class_type, make_student
) -> None:
    ct = await make_class_type()
    await make_student(class_type_id=ct["id"])

    response = await client.delete(f"/api/class-types/{ct['id']}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "该班型下有 1 名学员，无法删除"

    unused = await make_class_type(name="空班型")
    response = await client.delete(f"/api/class-types/{unused['id']}", headers=admin_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_list_students_filters_and_pagination(client: AsyncClient, admin_headers, make_student) -> None:
    await make_student(name="张三", coach_name="李教练")
    await make_student(name="张四", coach_name="王教练")
    await make_student(name="赵五", coach_name="李教练")

    response = await client.get(
        "/api/students",
        params={"keyword": "张", "limit": 1, "offset": 0, "sortBy": "name", "sortOrder": "asc"},
        headers=admin_headers,
    )
    data = response.json()["data"]
    assert data["pagination"] == {"total": 2, "limit": 1, "offset": 0}
    assert data["list"][0]["name"] == "张三"

    response = await client.get("/api/students", params={"coach_name": "李"}, headers=admin_headers)
    assert response.json()["data"]["pagination"]["total"] == 2

    # unknown sort column falls back to the default
    response = await client.get("/api/students", params={"sortBy": "password"}, headers=admin_headers)
    assert response.status_code == 200
