"""
Authentication API endpoints.

Login and logout for admin and employee users, and current-user info.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from finance_backend.app.db.session import get_db
from finance_backend.app.models.user import User
from finance_backend.app.schemas.auth import UserLogin, TokenResponse, MeResponse
from finance_backend.app.core.security import verify_password
from finance_backend.app.core.jwt import create_access_token
from finance_backend.app.core.dependencies import get_current_user, security
from finance_backend.app.core.token_revocation import revoke_token

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger("finance.auth")


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Failed attempts are logged with the reason.
    """
    result = await db.execute(select(User).where(User.username == credentials.username))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning(
            "Login failed",
            extra={"username": credentials.username, "reason": "unknown user" if not user else "bad password"},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        logger.warning("Login failed", extra={"username": user.username, "reason": "inactive"})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    jwt_payload = {
        "sub": user.username,
        "user_id": user.id,
        "role": user.role.value,
        "employee_id": user.employee_id
    }
    access_token = create_access_token(data=jwt_payload)

    logger.info("Login success", extra={"user_id": user.id, "username": user.username})

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        username=user.username,
        role=user.role,
        employee_id=user.employee_id
    )


@router.get("/me", response_model=MeResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Employee logins include their employee record under `details`.
    """
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return MeResponse.model_validate(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: dict = Depends(get_current_user)
):
    """Revoke the presented token; other sessions of the user stay valid."""
    await revoke_token(credentials.credentials, current_user["user_id"])
    logger.info("Logout", extra={"user_id": current_user["user_id"]})
