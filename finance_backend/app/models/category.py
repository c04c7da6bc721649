"""
Category database model.

Categories are referenced by name from transactions and reimbursements.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from finance_backend.app.db.session import Base
from finance_backend.app.models.finance_enums import CategoryType


class Category(Base):
    """
    Category model.

    A category is either an INCOME or an EXPENSE category and may be scoped
    to a single company (company_id NULL means shared by all companies).
    """
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    type = Column(Enum(CategoryType), default=CategoryType.EXPENSE, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)

    company = relationship("Company", lazy="joined")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def company_name(self):
        return self.company.name if self.company else None

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', type='{self.type.value}')>"
