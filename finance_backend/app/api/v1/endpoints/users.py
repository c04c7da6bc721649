"""
User API Endpoints.

Admin-only management of login accounts. EMPLOYEE logins are created and
removed together with their employee record (see employees.py).
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finance_backend.app.core.exceptions import ResourceConflictError, ResourceNotFoundError
from finance_backend.app.core.guards import require_admin
from finance_backend.app.core.security import get_password_hash
from finance_backend.app.core.token_revocation import revoke_all_user_tokens
from finance_backend.app.db.session import get_db
from finance_backend.app.models.enums import UserRole
from finance_backend.app.models.user import User
from finance_backend.app.schemas.auth import UserCreate, UserResponse

logger = logging.getLogger("finance.users")

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserResponse])
async def list_users(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List all login accounts (admin-only)."""
    result = await db.execute(select(User).order_by(User.username))
    return [UserResponse.model_validate(user) for user in result.scalars().all()]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create an ADMIN login (admin-only)."""
    existing = await db.execute(select(User.id).where(User.username == user_data.username))
    if existing.scalar_one_or_none() is not None:
        raise ResourceConflictError("User", message=f"Username '{user_data.username}' already exists")

    new_user = User(
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        role=UserRole.ADMIN,
        is_active=True
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    logger.info("User created", extra={"user_id": new_user.id, "created_by": admin["user_id"]})
    return UserResponse.model_validate(new_user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a login account (admin-only).

    All tokens issued to the user are revoked immediately.
    """
    if user_id == admin["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete yourself"
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise ResourceNotFoundError("User", user_id)

    await db.delete(user)
    await db.commit()
    await revoke_all_user_tokens(user_id)

    logger.info("User deleted", extra={"user_id": user_id, "deleted_by": admin["user_id"]})
