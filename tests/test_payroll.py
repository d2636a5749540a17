from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.api.coach_salary.payroll import apply_salary_figures
from drivingschool.core.enums import SalaryConfigType
from drivingschool.core.models import CoachMonthlySalary, ExamRegistration

RATES = {
    SalaryConfigType.BASE_DAILY_SALARY: Decimal("150.00"),
    SalaryConfigType.SUBJECT2_COMMISSION: Decimal("80.00"),
    SalaryConfigType.SUBJECT3_COMMISSION: Decimal("100.00"),
    SalaryConfigType.RECRUITMENT_COMMISSION: Decimal("200.00"),
}


def test_salary_arithmetic() -> None:
    record = CoachMonthlySalary(attendance_days=22, bonus=Decimal("300.00"), deduction=Decimal("50.00"))
    apply_salary_figures(record, RATES, subject2_passes=3, subject3_passes=2, new_students=1)

    assert record.base_salary == Decimal("3300.00")
    assert record.subject2_commission == Decimal("240.00")
    assert record.subject3_commission == Decimal("200.00")
    assert record.recruitment_commission == Decimal("200.00")
    assert record.gross_salary == Decimal("4190.00")


def test_missing_rates_resolve_to_zero() -> None:
    rates = {config_type: Decimal("0") for config_type in SalaryConfigType}
    record = CoachMonthlySalary(attendance_days=20, bonus=Decimal("0"), deduction=Decimal("0"))
    apply_salary_figures(record, rates, 5, 5, 5)
    assert record.gross_salary == Decimal("0.00")


async def _config(client: AsyncClient, headers, config_type: str, amount: str, effective: str, expiry=None):
    response = await client.post(
        "/api/salary-config",
        json={
            "config_name": config_type,
            "config_type": config_type,
            "amount": amount,
            "effective_date": effective,
            "expiry_date": expiry,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _coach(client: AsyncClient, headers, name: str, id_card: str, status: str = "在职") -> dict:
    response = await client.post(
        "/api/coaches",
        json={"name": name, "id_card": id_card, "phone": "13700000000", "gender": "男", "status": status},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_current_config_resolution(client: AsyncClient, admin_headers) -> None:
    await _config(client, admin_headers, "base_daily_salary", "120.00", "2024-01-01")
    await _config(client, admin_headers, "base_daily_salary", "150.00", "2025-01-01")
    await _config(client, admin_headers, "subject2_commission", "90.00", "2024-01-01", "2024-12-31")

    response = await client.get("/api/salary-config/current", params={"month": "2025-03"}, headers=admin_headers)
    rows = response.json()["data"]
    assert len(rows) == 1
    assert rows[0]["config_type"] == "base_daily_salary"
    assert Decimal(rows[0]["amount"]) == Decimal("150")

    response = await client.get("/api/salary-config/current", params={"month": "2024-06"}, headers=admin_headers)
    amounts = {row["config_type"]: Decimal(row["amount"]) for row in response.json()["data"]}
    assert amounts == {"base_daily_salary": Decimal("120"), "subject2_commission": Decimal("90")}

    bad = await client.get("/api/salary-config/current", params={"month": "2025-13"}, headers=admin_headers)
    assert bad.status_code == 400


@pytest.mark.asyncio
async def test_generate_refresh_update_and_paid_lock(
    client: AsyncClient, admin_headers, make_student, make_schedule, db_session: AsyncSession
) -> None:
    await _config(client, admin_headers, "base_daily_salary", "150.00", "2025-01-01")
    await _config(client, admin_headers, "subject2_commission", "80.00", "2025-01-01")
    await _config(client, admin_headers, "recruitment_commission", "200.00", "2025-01-01")
    coach = await _coach(client, admin_headers, "李教练", "110101199003070062")
    await _coach(client, admin_headers, "离职教练", "110101199003070070", status="离职")

    await make_student(coach_name="李教练", coach_subject2_name="李教练", enrollment_date="2025-03-05")
    await make_student(coach_name="李教练", enrollment_date="2025-02-28")

    first = await client.post("/api/coach-salary/generate", json={"salary_month": "2025-03"}, headers=admin_headers)
    assert first.status_code == 200, first.text
    assert first.json()["data"] == {"generated": 1}
    second = await client.post("/api/coach-salary/generate", json={"salary_month": "2025-03"}, headers=admin_headers)
    assert second.json()["data"] == {"generated": 0}

    listed = await client.get("/api/coach-salary", params={"salary_month": "2025-03"}, headers=admin_headers)
    record = listed.json()["data"]["list"][0]
    assert record["coach_id"] == coach["id"]
    assert record["status"] == "draft"
    assert record["new_student_count"] == 1
    assert record["attendance_days"] == 0
    assert Decimal(record["gross_salary"]) == Decimal("200")

    updated = await client.put(
        f"/api/coach-salary/{record['id']}",
        json={"attendance_days": 20, "bonus": "100.00", "deduction": "30.00", "deduction_reason": "迟到"},
        headers=admin_headers,
    )
    assert updated.status_code == 200, updated.text
    data = updated.json()["data"]
    assert Decimal(data["base_salary"]) == Decimal("3000")
    assert Decimal(data["gross_salary"]) == Decimal("3270")

    # a subject-2 pass in March is picked up by refresh; manual fields survive
    student_id = (await client.get("/api/students", params={"coach_name": "李教练"}, headers=admin_headers)).json()[
        "data"
    ]["list"]
    subject2_student = next(s for s in student_id if s["coach_subject2_name"] == "李教练")
    schedule = await make_schedule(exam_type="科目二", exam_date="2025-03-20")
    db_session.add(
        ExamRegistration(student_id=subject2_student["id"], exam_schedule_id=schedule["id"], exam_result="通过")
    )
    await db_session.commit()

    refreshed = await client.post("/api/coach-salary/refresh", json={"salary_month": "2025-03"}, headers=admin_headers)
    assert refreshed.json()["data"] == {"refreshed": 1}
    detail = (await client.get(f"/api/coach-salary/{record['id']}", headers=admin_headers)).json()["data"]
    assert detail["subject2_pass_count"] == 1
    assert detail["attendance_days"] == 20
    assert Decimal(detail["gross_salary"]) == Decimal("3350")

    paid = await client.put(f"/api/coach-salary/{record['id']}", json={"status": "paid"}, headers=admin_headers)
    assert paid.json()["data"]["status"] == "paid"

    locked = await client.put(f"/api/coach-salary/{record['id']}", json={"bonus": "1.00"}, headers=admin_headers)
    assert locked.status_code == 400
    assert (await client.delete(f"/api/coach-salary/{record['id']}", headers=admin_headers)).status_code == 400
    batch = await client.delete("/api/coach-salary/batch", params={"salary_month": "2025-03"}, headers=admin_headers)
    assert batch.status_code == 400
    assert batch.json()["message"] == "该月份有 1 条已发放的工资记录，不能删除"

    refreshed = await client.post("/api/coach-salary/refresh", json={"salary_month": "2025-03"}, headers=admin_headers)
    assert refreshed.json()["data"] == {"refreshed": 0}


@pytest.mark.asyncio
async def test_batch_delete_and_month_validation(client: AsyncClient, admin_headers) -> None:
    await _coach(client, admin_headers, "王教练", "110101199003070062")
    await client.post("/api/coach-salary/generate", json={"salary_month": "2025-04"}, headers=admin_headers)

    deleted = await client.delete("/api/coach-salary/batch", params={"salary_month": "2025-04"}, headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json()["data"] == {"deleted": 1}

    bad = await client.post("/api/coach-salary/generate", json={"salary_month": "2025/04"}, headers=admin_headers)
    assert bad.status_code == 400
    assert bad.json()["message"] == "请提供有效的月份（格式：YYYY-MM）"


@pytest.mark.asyncio
async def test_coach_with_payroll_cannot_be_deleted(client: AsyncClient, admin_headers) -> None:
    coach = await _coach(client, admin_headers, "赵教练", "110101199003070062")
    await client.post("/api/coach-salary/generate", json={"salary_month": "2025-05"}, headers=admin_headers)

    response = await client.delete(f"/api/coaches/{coach['id']}", headers=admin_headers)
    assert response.status_code == 400

    duplicate = await client.post(
        "/api/coaches",
        json={"name": "重名", "id_card": "110101199003070062", "phone": "1", "gender": "女"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "该身份证号已存在"
