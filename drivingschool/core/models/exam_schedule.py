from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from drivingschool.db.session import Base


class ExamSchedule(Base):
    """One exam sitting. arranged_count is only changed by registration create/delete."""

    __tablename__ = "exam_schedules"
    __table_args__ = (
        CheckConstraint("arranged_count >= 0", name="chk_exam_schedule_arranged_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_date = Column(Date, nullable=False, index=True)
    exam_type = Column(String(10), nullable=False)  # 科目一..科目四
    venue_id = Column(Integer, ForeignKey("exam_venues.id", ondelete="RESTRICT"), nullable=False)
    capacity = Column(Integer, nullable=False, default=0)
    arranged_count = Column(Integer, nullable=False, default=0)
    person_in_charge = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    venue = relationship("ExamVenue")
