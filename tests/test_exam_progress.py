from datetime import date

import pytest

from drivingschool.api.exam_registrations.progress import apply_exam_result, new_progress
from drivingschool.core.enums import ExamQualification, ExamResult, ExamSubject, SubjectStatus, WarningType

TODAY = date(2025, 3, 15)


def _fail(progress, subject=ExamSubject.SUBJECT2):
    return apply_exam_result(progress, subject, ExamResult.FAIL, TODAY)


def test_new_progress_starts_untaken() -> None:
    progress = new_progress(1, "C1")
    for subject in ExamSubject:
        assert getattr(progress, f"{subject.prefix}_status") == SubjectStatus.NOT_TAKEN.value
        assert getattr(progress, f"{subject.prefix}_failed_count") == 0
    assert progress.total_progress == 0
    assert progress.exam_qualification == ExamQualification.NORMAL.value


def test_pass_sets_date_and_progress() -> None:
    progress = new_progress(1)
    warnings = apply_exam_result(progress, ExamSubject.SUBJECT1, ExamResult.PASS, TODAY)
    assert warnings == []
    assert progress.subject1_status == SubjectStatus.PASSED.value
    assert progress.subject1_pass_date == TODAY
    assert progress.subject1_total_count == 1
    assert progress.total_progress == 25


def test_failure_escalation() -> None:
    progress = new_progress(1)
    assert _fail(progress) == []
    assert _fail(progress) == []

    third = _fail(progress)
    assert [w for w, _ in third] == [WarningType.THIRD_FAILURE]
    assert third[0][1] == "学员科目二已连续3次未通过，请注意考试安排"

    fourth = _fail(progress)
    assert [w for w, _ in fourth] == [WarningType.FOURTH_FAILURE]
    assert fourth[0][1] == "学员科目二已连续4次未通过，请慎重约考第5次考试"
    assert progress.exam_qualification == ExamQualification.NORMAL.value

    fifth = _fail(progress)
    assert [w for w, _ in fifth] == [WarningType.REVOKED]
    assert progress.exam_qualification == ExamQualification.REVOKED.value
    assert progress.disqualified_date == TODAY
    assert progress.disqualified_reason == "科目二连续5次未通过"
    assert progress.subject2_failed_count == 5
    assert progress.subject2_total_count == 5

    sixth = _fail(progress)
    assert [w for w, _ in sixth] == [WarningType.REVOKED]
    assert progress.exam_qualification == ExamQualification.REVOKED.value


def test_second_subject_reaching_five_failures_revokes_again() -> None:
    progress = new_progress(1)
    for _ in range(5):
        _fail(progress, ExamSubject.SUBJECT2)
    assert progress.disqualified_reason == "科目二连续5次未通过"

    later = date(2025, 4, 1)
    seen = [
        [w for w, _ in apply_exam_result(progress, ExamSubject.SUBJECT3, ExamResult.FAIL, later)]
        for _ in range(5)
    ]
    assert seen == [
        [],
        [],
        [WarningType.THIRD_FAILURE],
        [WarningType.FOURTH_FAILURE],
        [WarningType.REVOKED],
    ]
    assert progress.exam_qualification == ExamQualification.REVOKED.value
    assert progress.disqualified_date == later
    assert progress.disqualified_reason == "科目三连续5次未通过"


def test_pass_resets_failure_streak() -> None:
    progress = new_progress(1)
    _fail(progress)
    _fail(progress)
    apply_exam_result(progress, ExamSubject.SUBJECT2, ExamResult.PASS, TODAY)
    assert progress.subject2_failed_count == 0
    assert progress.subject2_total_count == 3

    assert _fail(progress) == []
    assert _fail(progress) == []
    assert [w for w, _ in _fail(progress)] == [WarningType.THIRD_FAILURE]


def test_subjects_are_independent() -> None:
    progress = new_progress(1)
    for _ in range(4):
        _fail(progress, ExamSubject.SUBJECT3)
    assert _fail(progress, ExamSubject.SUBJECT2) == []
    assert progress.subject3_failed_count == 4
    assert progress.subject2_failed_count == 1


def test_total_progress_counts_passed_subjects() -> None:
    progress = new_progress(1)
    for subject in ExamSubject:
        apply_exam_result(progress, subject, ExamResult.PASS, TODAY)
    assert progress.total_progress == 100

    _fail(progress, ExamSubject.SUBJECT4)
    assert progress.subject4_status == SubjectStatus.FAILED.value
    assert progress.total_progress == 75


def test_pending_is_not_a_result() -> None:
    with pytest.raises(ValueError):
        apply_exam_result(new_progress(1), ExamSubject.SUBJECT1, ExamResult.PENDING, TODAY)
