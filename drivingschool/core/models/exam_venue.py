from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from drivingschool.db.session import Base


class ExamVenue(Base):
    __tablename__ = "exam_venues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    address = Column(String(255), nullable=True)
    # Default capacity for schedules created at this venue
    capacity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
