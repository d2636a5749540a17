"""Per-student exam progress: four subject state machines plus the qualification flag."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from drivingschool.core.enums import ExamQualification, SubjectStatus
from drivingschool.db.session import Base

_NOT_TAKEN = SubjectStatus.NOT_TAKEN.value


class StudentExamProgress(Base):
    """
    Created lazily on the first exam result or the first progress query.
    exam_qualification is terminal once revoked.
    """

    __tablename__ = "student_exam_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, unique=True)
    license_type = Column(String(10), nullable=True)

    subject1_status = Column(String(10), nullable=False, default=_NOT_TAKEN)
    subject1_total_count = Column(Integer, nullable=False, default=0)
    subject1_failed_count = Column(Integer, nullable=False, default=0)
    subject1_pass_date = Column(Date, nullable=True)

    subject2_status = Column(String(10), nullable=False, default=_NOT_TAKEN)
    subject2_total_count = Column(Integer, nullable=False, default=0)
    subject2_failed_count = Column(Integer, nullable=False, default=0)
    subject2_pass_date = Column(Date, nullable=True)

    subject3_status = Column(String(10), nullable=False, default=_NOT_TAKEN)
    subject3_total_count = Column(Integer, nullable=False, default=0)
    subject3_failed_count = Column(Integer, nullable=False, default=0)
    subject3_pass_date = Column(Date, nullable=True)

    subject4_status = Column(String(10), nullable=False, default=_NOT_TAKEN)
    subject4_total_count = Column(Integer, nullable=False, default=0)
    subject4_failed_count = Column(Integer, nullable=False, default=0)
    subject4_pass_date = Column(Date, nullable=True)

    total_progress = Column(Integer, nullable=False, default=0)
    exam_qualification = Column(String(10), nullable=False, default=ExamQualification.NORMAL.value)
    disqualified_date = Column(Date, nullable=True)
    disqualified_reason = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student")
