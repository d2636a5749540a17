"""Monthly payroll record per coach. Immutable once paid."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint

from drivingschool.core.enums import SalaryStatus
from drivingschool.db.session import Base


class CoachMonthlySalary(Base):
    __tablename__ = "coach_monthly_salary"
    __table_args__ = (
        UniqueConstraint("coach_id", "salary_month", name="uq_coach_monthly_salary_coach_month"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    coach_id = Column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    coach_name = Column(String(50), nullable=False)
    salary_month = Column(String(7), nullable=False, index=True)  # YYYY-MM

    # Entered manually; refresh never touches these
    attendance_days = Column(Integer, nullable=False, default=0)
    bonus = Column(Numeric(12, 2), nullable=False, default=0)
    deduction = Column(Numeric(12, 2), nullable=False, default=0)
    deduction_reason = Column(String(255), nullable=True)

    base_salary = Column(Numeric(12, 2), nullable=False, default=0)
    subject2_pass_count = Column(Integer, nullable=False, default=0)
    subject2_commission = Column(Numeric(12, 2), nullable=False, default=0)
    subject3_pass_count = Column(Integer, nullable=False, default=0)
    subject3_commission = Column(Numeric(12, 2), nullable=False, default=0)
    new_student_count = Column(Integer, nullable=False, default=0)
    recruitment_commission = Column(Numeric(12, 2), nullable=False, default=0)
    gross_salary = Column(Numeric(12, 2), nullable=False, default=0)
    net_salary = Column(Numeric(12, 2), nullable=True)

    status = Column(String(20), nullable=False, default=SalaryStatus.DRAFT.value)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
