"""LINE login and profile setup."""

import logging
from dataclasses import dataclass
from typing import Optional

from famquiz.auth.jwt import create_access_token
from famquiz.auth.line_login import exchange_code_for_id_token, verify_line_id_token
from famquiz.database.interfaces import UserRepositoryInterface
from famquiz.models.user import User, UserRole
from famquiz.services.errors import ErrorKind, ServiceError, bad_request

logger = logging.getLogger(__name__)

# Role assigned on first login; profile setup may change it
DEFAULT_ROLE = UserRole.FAMILY


@dataclass
class LoginResult:
    token: str
    is_new_user: bool
    user: User


class AuthService:
    """Authenticates LINE users and manages their profile."""

    def __init__(self, user_repository: UserRepositoryInterface):
        self.users = user_repository

    def login_with_line(self, code: Optional[str] = None, id_token: Optional[str] = None) -> LoginResult:
        """Log in with a LINE authorization code or an ID token.

        The user is created on first login.

        Raises:
            ServiceError: BAD_REQUEST if neither credential is given,
                UNAUTHORIZED if LINE rejects it
        """
        if not code and not id_token:
            raise bad_request("code or idToken is required.", field="code")

        if code:
            id_token = exchange_code_for_id_token(code)
            if not id_token:
                raise ServiceError(ErrorKind.UNAUTHORIZED, "Invalid LINE authorization code.")

        line_user = verify_line_id_token(id_token)
        if not line_user:
            raise ServiceError(ErrorKind.UNAUTHORIZED, "Invalid LINE ID token.")

        user = self.users.get_by_line_id(line_user["line_id"])
        is_new_user = user is None
        if is_new_user:
            user = self.users.create(line_user["line_id"], line_user["display_name"], DEFAULT_ROLE)
            logger.info(f"New user {user.id} registered via LINE")

        return LoginResult(token=create_access_token(user), is_new_user=is_new_user, user=user)

    def update_profile(self, user_id: str, display_name: Optional[str], role: Optional[str]) -> LoginResult:
        """Set display name and role; returns a fresh token carrying the new role."""
        display_name = (display_name or "").strip()
        if not display_name:
            raise bad_request("displayName is required.", field="displayName")

        try:
            user_role = UserRole(role)
        except ValueError:
            raise bad_request("role must be 'grandparent' or 'family'.", field="role")

        try:
            user = self.users.update_profile(user_id, display_name, user_role)
        except ValueError:
            raise ServiceError(ErrorKind.NOT_FOUND, "User not found.")
        return LoginResult(token=create_access_token(user), is_new_user=False, user=user)
