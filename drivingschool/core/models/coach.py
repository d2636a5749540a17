from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, String, Text

from drivingschool.core.enums import CoachStatus
from drivingschool.db.session import Base


class Coach(Base):
    __tablename__ = "coaches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    id_card = Column(String(18), nullable=False, unique=True)
    phone = Column(String(20), nullable=False)
    gender = Column(String(10), nullable=True)
    license_type = Column(String(10), nullable=True)
    teaching_certificate = Column(String(50), nullable=True)
    # Comma separated, e.g. "科目二,科目三"
    teaching_subjects = Column(String(100), nullable=True)
    employment_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=CoachStatus.ACTIVE.value)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
