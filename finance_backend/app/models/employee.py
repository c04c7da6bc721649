"""
Employee database model.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from finance_backend.app.db.session import Base, utcnow


class Employee(Base):
    """
    Employee model.

    Each employee has one EMPLOYEE login (see User.employee_id) used to
    submit and follow reimbursement requests.
    """
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(150), nullable=False, index=True)
    position = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)

    user = relationship("User", back_populates="employee", uselist=False, lazy="selectin", cascade="all, delete-orphan")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def username(self):
        return self.user.username if self.user else None

    def __repr__(self):
        return f"<Employee(id={self.id}, name='{self.name}')>"
