"""FastAPI dependencies for authentication."""

import os
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from famquiz.database.database import get_db
from famquiz.database.user_repository import UserRepository
from famquiz.auth.jwt import get_user_id_from_token
from famquiz.models.user import User

AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "auth_token")

# Bearer header is still accepted for older clients
security = HTTPBearer(auto_error=False)


def get_current_user(
    auth_token: Optional[str] = Cookie(default=None, alias=AUTH_COOKIE_NAME),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current authenticated user from the session cookie (or bearer token).

    The user is reloaded from the database so role and points are current.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or the user is gone
    """
    token = auth_token or (credentials.credentials if credentials else None)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    user_id = get_user_id_from_token(token)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user = UserRepository(db).get(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user
