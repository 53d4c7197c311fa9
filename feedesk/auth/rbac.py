from fastapi import Depends, HTTPException, status

from feedesk.auth.dependencies import get_current_user
from feedesk.auth.schemas import CurrentUser
from feedesk.core.exceptions import ServiceError


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Require the admin role. Used for fee configuration, corrections and deletions."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admin can perform this action",
        )
    return current_user


def can_access_class(current_user: CurrentUser, class_name: str, division: str) -> bool:
    if current_user.is_admin:
        return True
    return current_user.class_name == class_name and current_user.division == division


def ensure_class_access(current_user: CurrentUser, class_name: str, division: str) -> None:
    """Teachers may only work with students of their own class and division."""
    if not can_access_class(current_user, class_name, division):
        raise ServiceError(
            "You can only manage students of your own class and division",
            status.HTTP_403_FORBIDDEN,
        )
