import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.models import User
from feedesk.auth.schemas import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    UserInfo,
)
from feedesk.auth.security import create_access_token, hash_password, verify_password
from feedesk.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


def _user_to_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        username=user.username,
        role=user.role,
        class_name=user.class_name,
        division=user.division,
    )


async def _get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    user = await _get_user_by_username(db, payload.username.strip().lower())
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for username=%s", payload.username)
        raise ServiceError("Invalid username or password", status.HTTP_401_UNAUTHORIZED)

    access_token = create_access_token(
        subject={
            "sub": user.username,
            "user_id": str(user.id),
            "role": user.role,
        }
    )
    logger.info("User %s logged in", user.username)
    return LoginResponse(
        access_token=access_token,
        user=_user_to_info(user),
        issued_at=datetime.now(timezone.utc),
    )


async def change_password(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: ChangePasswordRequest,
) -> None:
    user = await db.get(User, current_user.id)
    if not user or not verify_password(payload.old_password, user.password_hash):
        raise ServiceError("Current password is incorrect", status.HTTP_400_BAD_REQUEST)
    user.password_hash = hash_password(payload.new_password)
    await db.commit()
    logger.info("User %s changed password", user.username)


async def reset_user_password(
    db: AsyncSession,
    username: str,
    payload: ResetPasswordRequest,
) -> None:
    user = await _get_user_by_username(db, username)
    if not user:
        raise ServiceError("User not found", status.HTTP_404_NOT_FOUND)
    user.password_hash = hash_password(payload.new_password)
    await db.commit()
    logger.info("Password reset for user %s", username)


async def list_users(db: AsyncSession) -> List[UserInfo]:
    result = await db.execute(select(User).order_by(User.role, User.username))
    return [_user_to_info(u) for u in result.scalars().all()]
