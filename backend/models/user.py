# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""User ORM model."""

from sqlalchemy import Column, Integer, String, Enum, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base

ROLE_EMPLOYEE = "employee"
ROLE_ADMIN = "admin"
ROLES = (ROLE_EMPLOYEE, ROLE_ADMIN)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    dept = Column(String(255), nullable=False)
    designation = Column(String(255), nullable=False)
    # Always stored lower-cased and trimmed (see auth.service.normalize_email)
    email = Column(String(255), unique=True, nullable=False, index=True)
    contact_number = Column(String(32), nullable=False)
    employee_number = Column(String(64), unique=True, nullable=False, index=True)
    role = Column(Enum(*ROLES, name="user_role"), nullable=False, default=ROLE_EMPLOYEE)
    # passlib hash string; the salt is embedded in it
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    tickets = relationship("Ticket", back_populates="employee")
