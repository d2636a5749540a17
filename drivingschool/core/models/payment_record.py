"""Payment ledger: signed amounts, positive = payment, negative = refund or discount."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from drivingschool.core.enums import PaymentRecordType
from drivingschool.db.session import Base


class PaymentRecord(Base):
    """Append-only. Deleting a row must go through the reversal in payments.service."""

    __tablename__ = "payment_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    record_type = Column(String(20), nullable=False, default=PaymentRecordType.PAYMENT.value)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(String(20), nullable=False)
    operator = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="payment_records")
