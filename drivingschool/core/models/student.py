"""Student: enrollee with a frozen contract amount and derived financial state."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from drivingschool.core.enums import EnrollmentStatus, PaymentStatus
from drivingschool.db.session import Base


class Student(Base):
    """
    contract_amount is snapshotted from the class type and never follows later price changes.
    debt_amount == contract_amount - actual_amount - discount_amount after every mutation.
    """

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    id_card = Column(String(18), nullable=False, unique=True)
    phone = Column(String(20), nullable=False)
    gender = Column(String(10), nullable=False)
    birth_date = Column(Date, nullable=True)
    age = Column(Integer, nullable=True)
    address = Column(String(255), nullable=True)
    emergency_contact = Column(String(50), nullable=True)
    emergency_phone = Column(String(20), nullable=True)

    enrollment_status = Column(String(20), nullable=False, default=EnrollmentStatus.CONSULTING.value)
    enrollment_date = Column(Date, nullable=True)

    # Coaches are attributed by name (payroll counts match on these)
    coach_name = Column(String(50), nullable=True)
    coach_subject2_name = Column(String(50), nullable=True)
    coach_subject3_name = Column(String(50), nullable=True)

    class_type_id = Column(Integer, ForeignKey("class_types.id", ondelete="RESTRICT"), nullable=True)
    license_type = Column(String(10), nullable=False, default="C1")

    contract_amount = Column(Numeric(12, 2), nullable=False, default=0)
    actual_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    debt_amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value)

    registrar_id = Column(Integer, nullable=True)
    registrar_name = Column(String(50), nullable=True)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    class_type = relationship("ClassType")
    payment_records = relationship("PaymentRecord", back_populates="student", cascade="all, delete-orphan")
