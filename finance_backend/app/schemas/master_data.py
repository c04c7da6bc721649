"""
Company, category and employee Pydantic schemas.
"""

from typing import Optional

from pydantic import EmailStr, Field

from finance_backend.app.models.finance_enums import CategoryType
from finance_backend.app.schemas.common import CamelModel


class CompanyCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)


class CompanyResponse(CamelModel):
    id: int
    name: str


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: CategoryType = CategoryType.EXPENSE
    company_id: Optional[int] = None


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[CategoryType] = None
    company_id: Optional[int] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    type: CategoryType
    company_id: Optional[int] = None
    company_name: Optional[str] = None


class EmployeeCreate(CamelModel):
    """Creates the employee and its EMPLOYEE login."""
    name: str = Field(..., min_length=1, max_length=150)
    position: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6)


class EmployeeUpdate(CamelModel):
    """Password is changed only when provided."""
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    position: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    password: Optional[str] = Field(None, min_length=6)


class EmployeeResponse(CamelModel):
    id: int
    name: str
    position: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
