"""Repository for User database operations."""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from famquiz.models.user import User, UserRole
from famquiz.database.models import UserDB, enum_to_value

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None

    def get_by_line_id(self, line_id: str) -> Optional[User]:
        """Get user by LINE user ID."""
        user_db = self.db.query(UserDB).filter(UserDB.line_id == line_id).first()
        return user_db.to_pydantic() if user_db else None

    def create(self, line_id: str, display_name: str, role: Optional[UserRole]) -> User:
        """Create a new user on first login."""
        try:
            user_db = UserDB(
                line_id=line_id,
                display_name=display_name or "",
                role=enum_to_value(role) if role else None,
                points=0,
            )
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user_db.id} for LINE user {line_id}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user for LINE user {line_id}: {type(e).__name__}: {str(e)}")
            raise

    def update_profile(self, user_id: str, display_name: str, role: UserRole) -> User:
        """Set display name and role during profile setup."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        if not user_db:
            raise ValueError(f"User {user_id} not found")

        user_db.display_name = display_name
        user_db.role = enum_to_value(role)
        user_db.updated_at = datetime.utcnow()
        try:
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Updated profile of user {user_id}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def add_points(self, user_id: str, delta: int) -> int:
        """Atomically add `delta` points and return the new balance."""
        try:
            self.db.query(UserDB).filter(UserDB.id == user_id).update(
                {UserDB.points: UserDB.points + delta}, synchronize_session=False
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to add points for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
        return self._balance(user_id)

    def spend_points(self, user_id: str, amount: int) -> Optional[int]:
        """Atomically deduct `amount` points if the balance covers it.

        Returns:
            The new balance, or None if the balance was insufficient (nothing changes)
        """
        try:
            affected = (
                self.db.query(UserDB)
                .filter(UserDB.id == user_id, UserDB.points >= amount)
                .update({UserDB.points: UserDB.points - amount}, synchronize_session=False)
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to spend points for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
        if not affected:
            return None
        return self._balance(user_id)

    def _balance(self, user_id: str) -> int:
        row = self.db.query(UserDB.points).filter(UserDB.id == user_id).first()
        return int(row[0]) if row else 0
