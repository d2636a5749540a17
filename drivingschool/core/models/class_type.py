"""Class types: priced course packages. Students snapshot the price at enrollment."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from drivingschool.core.enums import ClassTypeStatus
from drivingschool.db.session import Base


class ClassType(Base):
    __tablename__ = "class_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    contract_amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ClassTypeStatus.ENABLED.value)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    price_history = relationship(
        "ClassTypePriceHistory", back_populates="class_type", cascade="all, delete-orphan"
    )


class ClassTypePriceHistory(Base):
    """Previous price of a class type, appended on every price change."""

    __tablename__ = "class_type_price_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    class_type_id = Column(Integer, ForeignKey("class_types.id", ondelete="CASCADE"), nullable=False, index=True)
    contract_amount = Column(Numeric(12, 2), nullable=False)
    effective_date = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    created_by = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    class_type = relationship("ClassType", back_populates="price_history")
