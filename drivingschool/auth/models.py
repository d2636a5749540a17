from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from drivingschool.core.enums import UserStatus
from drivingschool.db.session import Base


class User(Base):
    """Back-office operator account."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    real_name = Column(String(50), nullable=True)
    # Role name; "admin" bypasses permission checks
    role = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class Role(Base):
    """Role with JSON permissions, read by check_permission()."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    # Example shape:
    # {
    #   "payments": {"create": true, "read": true, "update": false, "delete": false},
    #   "students": {"read": true}
    # }
    permissions = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
