"""Exam warning log: immutable escalation record, only the handled fields change."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from drivingschool.db.session import Base


class ExamWarningLog(Base):
    __tablename__ = "exam_warning_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    warning_type = Column(String(20), nullable=False)  # 3次预警, 4次预警, 资格作废
    warning_subject = Column(String(10), nullable=False)
    warning_content = Column(Text, nullable=False)
    is_handled = Column(Boolean, nullable=False, default=False)
    handled_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    handled_time = Column(DateTime(timezone=True), nullable=True)
    handled_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student")
    handler = relationship("User", foreign_keys=[handled_by])
