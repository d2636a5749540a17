import pytest
from httpx import AsyncClient


async def _register(client: AsyncClient, headers, student_id: int, schedule_id: int):
    return await client.post(
        "/api/exam-registrations",
        json={"student_id": student_id, "exam_schedule_id": schedule_id},
        headers=headers,
    )


async def _result(client: AsyncClient, headers, registration_id: int, result: str, score=None):
    payload = {"exam_result": result}
    if score is not None:
        payload["exam_score"] = score
    return await client.put(f"/api/exam-registrations/{registration_id}/result", json=payload, headers=headers)


async def _take(client: AsyncClient, headers, make_schedule, student_id: int, subject: str, result: str):
    schedule = await make_schedule(exam_type=subject)
    registration = await _register(client, headers, student_id, schedule["id"])
    assert registration.status_code == 201, registration.text
    response = await _result(client, headers, registration.json()["data"]["id"], result)
    assert response.status_code == 200, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_capacity_is_enforced(client: AsyncClient, admin_headers, make_student, make_schedule) -> None:
    schedule = await make_schedule(capacity=2)
    students = [await make_student() for _ in range(3)]

    assert (await _register(client, admin_headers, students[0]["id"], schedule["id"])).status_code == 201
    assert (await _register(client, admin_headers, students[1]["id"], schedule["id"])).status_code == 201
    full = await _register(client, admin_headers, students[2]["id"], schedule["id"])
    assert full.status_code == 400
    assert full.json()["message"] == "该考试安排已满，无法报名"

    detail = await client.get(f"/api/exam-schedules/{schedule['id']}", headers=admin_headers)
    assert detail.json()["data"]["arranged_count"] == 2
    assert detail.json()["data"]["remaining"] == 0


@pytest.mark.asyncio
async def test_duplicate_registration_and_seat_release(
    client: AsyncClient, admin_headers, make_student, make_schedule
) -> None:
    schedule = await make_schedule(capacity=5)
    student = await make_student()

    first = await _register(client, admin_headers, student["id"], schedule["id"])
    again = await _register(client, admin_headers, student["id"], schedule["id"])
    assert again.status_code == 400
    assert again.json()["message"] == "该学员已报名此考试"

    deleted = await client.delete(f"/api/exam-registrations/{first.json()['data']['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    detail = await client.get(f"/api/exam-schedules/{schedule['id']}", headers=admin_headers)
    assert detail.json()["data"]["arranged_count"] == 0


@pytest.mark.asyncio
async def test_result_entry_updates_progress(client: AsyncClient, admin_headers, make_student, make_schedule) -> None:
    student = await make_student()
    data = await _take(client, admin_headers, make_schedule, student["id"], "科目一", "通过")

    assert data["registration"]["exam_result"] == "通过"
    assert data["subject_progress"]["status"] == "已通过"
    assert data["total_progress"] == 25
    assert data["warnings"] == []

    progress = await client.get(f"/api/student-progress/student/{student['id']}", headers=admin_headers)
    body = progress.json()["data"]
    assert body["total_progress"] == 25
    assert body["subjects"][0]["subject"] == "科目一"
    assert body["subjects"][0]["status"] == "已通过"


@pytest.mark.asyncio
async def test_result_cannot_be_entered_twice(client: AsyncClient, admin_headers, make_student, make_schedule) -> None:
    student = await make_student()
    schedule = await make_schedule()
    registration = await _register(client, admin_headers, student["id"], schedule["id"])
    registration_id = registration.json()["data"]["id"]

    pending = await _result(client, admin_headers, registration_id, "pending")
    assert pending.status_code == 400

    assert (await _result(client, admin_headers, registration_id, "未通过", "78.5")).status_code == 200
    again = await _result(client, admin_headers, registration_id, "通过")
    assert again.status_code == 400
    assert again.json()["message"] == "该考试结果已录入，不能重复录入"


@pytest.mark.asyncio
async def test_second_subject_revocation_is_logged(
    client: AsyncClient, admin_headers, make_student, make_schedule
) -> None:
    student = await make_student()
    registration_ids = []
    for subject in ["科目二"] * 5 + ["科目三"] * 5:
        schedule = await make_schedule(exam_type=subject)
        registration = await _register(client, admin_headers, student["id"], schedule["id"])
        assert registration.status_code == 201, registration.text
        registration_ids.append(registration.json()["data"]["id"])

    seen = []
    for registration_id in registration_ids:
        response = await _result(client, admin_headers, registration_id, "未通过")
        assert response.status_code == 200, response.text
        seen.append(response.json()["data"]["warnings"])
    assert seen == [[], [], ["3次预警"], ["4次预警"], ["资格作废"]] * 2

    warnings = await client.get(
        "/api/exam-warnings",
        params={"student_id": student["id"], "warning_type": "资格作废"},
        headers=admin_headers,
    )
    listed = warnings.json()["data"]["list"]
    assert sorted(w["warning_subject"] for w in listed) == ["科目三", "科目二"]

    detail = await client.get(f"/api/students/{student['id']}", headers=admin_headers)
    assert detail.json()["data"]["enrollment_status"] == "废考"


@pytest.mark.asyncio
async def test_five_failures_revoke_qualification(
    client: AsyncClient, admin_headers, make_student, make_schedule
) -> None:
    student = await make_student()
    seen = []
    for _ in range(5):
        data = await _take(client, admin_headers, make_schedule, student["id"], "科目二", "未通过")
        seen.append(data["warnings"])
    assert seen == [[], [], ["3次预警"], ["4次预警"], ["资格作废"]]
    assert data["exam_qualification"] == "已作废"

    detail = await client.get(f"/api/students/{student['id']}", headers=admin_headers)
    assert detail.json()["data"]["enrollment_status"] == "废考"

    warnings = await client.get(
        "/api/exam-warnings", params={"student_id": student["id"]}, headers=admin_headers
    )
    listed = warnings.json()["data"]
    assert listed["pagination"]["total"] == 3
    assert {w["warning_type"] for w in listed["list"]} == {"3次预警", "4次预警", "资格作废"}

    schedule = await make_schedule(exam_type="科目三")
    rejected = await _register(client, admin_headers, student["id"], schedule["id"])
    assert rejected.status_code == 400
    assert rejected.json()["message"] == "该学员已废考，无法报名考试"

    eligibility = await client.get(
        f"/api/student-progress/check-eligibility/{student['id']}/科目三", headers=admin_headers
    )
    assert eligibility.json()["data"]["eligible"] is False


@pytest.mark.asyncio
async def test_eligibility_and_warning_levels(client: AsyncClient, admin_headers, make_student, make_schedule) -> None:
    student = await make_student()
    await _take(client, admin_headers, make_schedule, student["id"], "科目一", "通过")
    await _take(client, admin_headers, make_schedule, student["id"], "科目二", "未通过")

    passed = await client.get(
        f"/api/student-progress/check-eligibility/{student['id']}/科目一", headers=admin_headers
    )
    assert passed.json()["data"] == {"eligible": False, "reason": "该学员科目一已通过，无需再次报考"}

    open_subject = await client.get(
        f"/api/student-progress/check-eligibility/{student['id']}/科目二", headers=admin_headers
    )
    assert open_subject.json()["data"]["eligible"] is True

    invalid = await client.get(
        f"/api/student-progress/check-eligibility/{student['id']}/科目五", headers=admin_headers
    )
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "无效的科目名称"

    progress = await client.get(f"/api/student-progress/student/{student['id']}", headers=admin_headers)
    levels = await client.get(
        f"/api/student-progress/{progress.json()['data']['id']}/warnings", headers=admin_headers
    )
    assert levels.json()["data"]["subject1_warning_level"] == 0
    assert levels.json()["data"]["subject2_warning_level"] == 1


@pytest.mark.asyncio
async def test_progress_list_and_overview(client: AsyncClient, admin_headers, make_student, make_schedule) -> None:
    first = await make_student(name="甲")
    second = await make_student(name="乙")
    await _take(client, admin_headers, make_schedule, first["id"], "科目一", "通过")
    await _take(client, admin_headers, make_schedule, second["id"], "科目一", "未通过")

    listed = await client.get(
        "/api/student-progress", params={"subject1_status": "已通过"}, headers=admin_headers
    )
    data = listed.json()["data"]
    assert data["pagination"]["total"] == 1
    assert data["list"][0]["student_name"] == "甲"

    overview = await client.get("/api/student-progress/statistics/overview", headers=admin_headers)
    stats = overview.json()["data"]
    assert stats["total_students"] == 2
    assert stats["subject1_passed"] == 1
    assert stats["fully_completed"] == 0


@pytest.mark.asyncio
async def test_handle_warnings(client: AsyncClient, admin_headers, make_student, make_schedule) -> None:
    student = await make_student()
    for _ in range(4):
        await _take(client, admin_headers, make_schedule, student["id"], "科目三", "未通过")

    stats = await client.get("/api/exam-warnings/statistics", headers=admin_headers)
    assert stats.json()["data"] == {
        "warning_3_count": 1,
        "warning_4_count": 1,
        "disqualified_count": 0,
        "total_unhandled": 2,
        "total_handled": 0,
    }

    listed = await client.get("/api/exam-warnings", headers=admin_headers)
    ids = [w["id"] for w in listed.json()["data"]["list"]]

    handled = await client.put(
        f"/api/exam-warnings/{ids[0]}/handle", json={"handled_notes": "已电话沟通"}, headers=admin_headers
    )
    assert handled.status_code == 200, handled.text
    body = handled.json()["data"]
    assert body["is_handled"] is True
    assert body["handler_name"] == "admin"
    assert body["handled_notes"] == "已电话沟通"

    again = await client.put(f"/api/exam-warnings/{ids[0]}/handle", json={}, headers=admin_headers)
    assert again.status_code == 400
    assert again.json()["message"] == "该预警已被处理"

    batch = await client.put(
        "/api/exam-warnings/batch/handle", json={"ids": ids, "handled_notes": "批量处理"}, headers=admin_headers
    )
    assert batch.json()["data"]["handled"] == 1

    stats = await client.get("/api/exam-warnings/statistics", headers=admin_headers)
    assert stats.json()["data"]["total_handled"] == 2
    assert stats.json()["data"]["total_unhandled"] == 0


@pytest.mark.asyncio
async def test_schedule_with_registrations_cannot_be_deleted(
    client: AsyncClient, admin_headers, make_student, make_schedule
) -> None:
    student = await make_student()
    schedule = await make_schedule()
    await _register(client, admin_headers, student["id"], schedule["id"])

    response = await client.delete(f"/api/exam-schedules/{schedule['id']}", headers=admin_headers)
    assert response.status_code == 400

    shrink = await client.put(f"/api/exam-schedules/{schedule['id']}", json={"capacity": 0}, headers=admin_headers)
    assert shrink.status_code == 400
