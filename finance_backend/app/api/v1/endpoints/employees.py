"""
Employee API Endpoints.

Every employee owns exactly one EMPLOYEE login; both are created, edited and
deleted together.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finance_backend.app.core.exceptions import ResourceConflictError, ResourceNotFoundError
from finance_backend.app.core.guards import require_admin
from finance_backend.app.core.security import get_password_hash
from finance_backend.app.core.token_revocation import revoke_all_user_tokens
from finance_backend.app.db.session import get_db
from finance_backend.app.models.employee import Employee
from finance_backend.app.models.enums import UserRole
from finance_backend.app.models.user import User
from finance_backend.app.schemas.master_data import EmployeeCreate, EmployeeResponse, EmployeeUpdate

logger = logging.getLogger("finance.employees")

router = APIRouter(prefix="/employees", tags=["Employees"])


async def _get_employee(db: AsyncSession, employee_id: int) -> Employee:
    result = await db.execute(select(Employee).where(Employee.id == employee_id))
    employee = result.scalar_one_or_none()
    if not employee:
        raise ResourceNotFoundError("Employee", employee_id)
    return employee


async def _ensure_username_free(db: AsyncSession, username: str) -> None:
    existing = await db.execute(select(User.id).where(User.username == username))
    if existing.scalar_one_or_none() is not None:
        raise ResourceConflictError("User", message=f"Username '{username}' already exists")


@router.get("", response_model=List[EmployeeResponse])
async def list_employees(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(Employee).order_by(Employee.name))
    return [EmployeeResponse.model_validate(e) for e in result.scalars().all()]


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create an employee and its EMPLOYEE login (admin-only).

    Raises 409 if the username is taken.
    """
    await _ensure_username_free(db, employee_data.username)

    employee = Employee(
        name=employee_data.name,
        position=employee_data.position,
        phone=employee_data.phone,
        email=employee_data.email,
        user=User(
            username=employee_data.username,
            hashed_password=get_password_hash(employee_data.password),
            role=UserRole.EMPLOYEE,
            is_active=True
        )
    )
    db.add(employee)
    await db.commit()
    await db.refresh(employee)

    logger.info("Employee created", extra={"employee_id": employee.id, "created_by": admin["user_id"]})
    return EmployeeResponse.model_validate(employee)


@router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    employee_data: EmployeeUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update an employee (admin-only).

    A new password revokes every token the login currently holds.
    """
    employee = await _get_employee(db, employee_id)
    updates = employee_data.model_dump(exclude_unset=True, exclude={"username", "password"})
    for field, value in updates.items():
        setattr(employee, field, value)

    user = employee.user
    password_changed = False
    if user is not None:
        if employee_data.username and employee_data.username != user.username:
            await _ensure_username_free(db, employee_data.username)
            user.username = employee_data.username
        if employee_data.password:
            user.hashed_password = get_password_hash(employee_data.password)
            password_changed = True

    await db.commit()
    await db.refresh(employee)

    if password_changed:
        await revoke_all_user_tokens(user.id)

    logger.info("Employee updated", extra={"employee_id": employee_id, "password_changed": password_changed})
    return EmployeeResponse.model_validate(employee)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
    employee_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete an employee together with its login (admin-only)."""
    employee = await _get_employee(db, employee_id)
    user_id = employee.user.id if employee.user else None

    await db.delete(employee)
    await db.commit()

    if user_id is not None:
        await revoke_all_user_tokens(user_id)

    logger.info("Employee deleted", extra={"employee_id": employee_id, "deleted_by": admin["user_id"]})
