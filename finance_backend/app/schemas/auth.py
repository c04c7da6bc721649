"""
Authentication and user Pydantic schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from finance_backend.app.models.enums import UserRole
from finance_backend.app.schemas.common import CamelModel
from finance_backend.app.schemas.master_data import EmployeeResponse


class UserLogin(CamelModel):
    username: str = Field(..., description="Username")
    password: str = Field(..., description="Password")


class TokenResponse(CamelModel):
    """Returned by a successful login."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int
    username: str
    role: UserRole
    employee_id: Optional[int] = None


class UserCreate(CamelModel):
    """Admin-created login. EMPLOYEE logins are created through /employees."""
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6)


class UserResponse(CamelModel):
    id: int
    username: str
    role: UserRole
    is_active: bool
    employee_id: Optional[int] = None
    created_at: datetime


class MeResponse(UserResponse):
    details: Optional[EmployeeResponse] = Field(None, validation_alias="employee")
