"""
Authentication API endpoints for Meridian

Sessions are issued by the Discord OAuth flow in the web app; the backend
only verifies them.
"""

from typing import Any

from fastapi import APIRouter, Depends

from meridian.api.deps import get_admin_allowlist, get_current_user
from meridian.core.security import AdminAllowlist
from meridian.models.user import User
from meridian.schemas.user import User as UserSchema, UserSession

router = APIRouter()


@router.get("/session", response_model=UserSession)
def read_session(
    current_user: User = Depends(get_current_user),
    allowlist: AdminAllowlist = Depends(get_admin_allowlist)
) -> Any:
    """
    Get the signed-in user.
    """
    return UserSession(
        user=UserSchema.model_validate(current_user),
        is_admin=allowlist.is_admin(current_user.discord_id)
    )
