from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, Text

from drivingschool.db.session import Base


class SalaryConfig(Base):
    """Dated payroll rate. The effective row per config_type is resolved per month."""

    __tablename__ = "salary_config"

    id = Column(Integer, primary_key=True, autoincrement=True)
    config_name = Column(String(100), nullable=False)
    config_type = Column(String(50), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    effective_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=True)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
