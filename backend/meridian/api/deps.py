"""
Dependencies for API endpoints in Meridian

This module provides common dependencies for API endpoints.
"""

from typing import Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from meridian.core.security import AdminAllowlist, decode_session_token
from meridian.db.session import SessionLocal
from meridian.models.user import User
from meridian.repositories.user import UserRepository

# Bearer scheme for session tokens
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    """
    Get database session

    Yields:
        Generator: Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> User:
    """
    Get current user from the session token

    Args:
        db: Database session
        credentials: Bearer credentials from the Authorization header

    Returns:
        User: Current user

    Raises:
        HTTPException: If the token is missing or invalid, or the user is not found
    """
    if credentials is None:
        raise _credentials_exception()

    try:
        payload = decode_session_token(credentials.credentials)
    except JWTError:
        raise _credentials_exception()

    discord_id = payload.get("sub")
    if not discord_id:
        raise _credentials_exception()

    user = UserRepository(db).get_by_discord_id(discord_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return user


def get_admin_allowlist(request: Request) -> AdminAllowlist:
    """Get the admin allowlist built at application startup"""
    return request.app.state.admin_allowlist


def get_current_admin(
    current_user: User = Depends(get_current_user),
    allowlist: AdminAllowlist = Depends(get_admin_allowlist)
) -> User:
    """
    Get current user, requiring admin rights

    Raises:
        HTTPException: If the user is not on the admin allowlist
    """
    if not allowlist.is_admin(current_user.discord_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="The user doesn't have enough privileges"
        )

    return current_user
