from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from drivingschool.core.enums import ExamResult
from drivingschool.db.session import Base


class ExamRegistration(Base):
    __tablename__ = "exam_registrations"
    __table_args__ = (
        UniqueConstraint("student_id", "exam_schedule_id", name="uq_exam_registration_student_schedule"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_schedule_id = Column(Integer, ForeignKey("exam_schedules.id", ondelete="RESTRICT"), nullable=False, index=True)
    exam_result = Column(String(20), nullable=False, default=ExamResult.PENDING.value)
    exam_score = Column(Numeric(5, 1), nullable=True)
    notes = Column(Text, nullable=True)
    registration_date = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student")
    exam_schedule = relationship("ExamSchedule")
