"""Repository for Group and GroupMember database operations."""

import logging
from typing import List, Optional
from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.orm import Session, joinedload

from famquiz.models.group import Group, GroupMember, MemberAnswerStats, MemberProfile
from famquiz.models.user import UserRole
from famquiz.database.models import AnswerDB, GroupDB, GroupMemberDB, QuizDB, UserDB

logger = logging.getLogger(__name__)


class GroupRepository:
    """Repository for Group and membership database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, group_id: str) -> Optional[Group]:
        """Get group by internal ID."""
        group_db = self.db.query(GroupDB).filter(GroupDB.id == group_id).first()
        return group_db.to_pydantic() if group_db else None

    def get_by_code(self, group_code: str) -> Optional[Group]:
        """Get group by its 8-character join code."""
        group_db = self.db.query(GroupDB).filter(GroupDB.group_code == group_code).first()
        return group_db.to_pydantic() if group_db else None

    def create(self, group_code: str, group_name: str, password_hash: str, alert_frequency_days: float) -> Group:
        """Create a new group."""
        try:
            group_db = GroupDB(
                group_code=group_code,
                group_name=group_name,
                password_hash=password_hash,
                alert_frequency_days=alert_frequency_days,
            )
            self.db.add(group_db)
            self.db.commit()
            self.db.refresh(group_db)
            logger.debug(f"Created group {group_db.id} ({group_code})")
            return group_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create group {group_code}: {type(e).__name__}: {str(e)}")
            raise

    def add_member(self, user_id: str, group_id: str, is_owner: bool) -> GroupMember:
        """Add a user to a group."""
        try:
            member_db = GroupMemberDB(user_id=user_id, group_id=group_id, is_owner=is_owner)
            self.db.add(member_db)
            self.db.commit()
            self.db.refresh(member_db)
            logger.debug(f"Added user {user_id} to group {group_id} (owner={is_owner})")
            return member_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to add user {user_id} to group {group_id}: {type(e).__name__}: {str(e)}")
            raise

    def get_member(self, user_id: str, group_id: str) -> Optional[GroupMember]:
        """Get the membership of a user in a specific group."""
        member_db = self.db.query(GroupMemberDB).filter(
            GroupMemberDB.user_id == user_id,
            GroupMemberDB.group_id == group_id,
        ).first()
        return member_db.to_pydantic() if member_db else None

    def get_membership(self, user_id: str) -> Optional[GroupMember]:
        """Get the (single) group membership of a user."""
        member_db = (
            self.db.query(GroupMemberDB)
            .filter(GroupMemberDB.user_id == user_id)
            .order_by(GroupMemberDB.joined_at)
            .first()
        )
        return member_db.to_pydantic() if member_db else None

    def _members_query(self, group_id: str):
        return (
            self.db.query(GroupMemberDB)
            .join(UserDB, UserDB.id == GroupMemberDB.user_id)
            .options(joinedload(GroupMemberDB.user))
            .filter(GroupMemberDB.group_id == group_id)
            .order_by(GroupMemberDB.joined_at)
        )

    def list_members(self, group_id: str) -> List[MemberProfile]:
        """All members of a group."""
        return [m.to_profile() for m in self._members_query(group_id).all()]

    def list_family_members(self, group_id: str) -> List[MemberProfile]:
        """Members whose role is not grandparent (including not-yet-onboarded users)."""
        members_db = self._members_query(group_id).filter(
            or_(UserDB.role.is_(None), UserDB.role != UserRole.GRANDPARENT.value)
        ).all()
        return [m.to_profile() for m in members_db]

    def list_grandparents(self, group_id: str) -> List[MemberProfile]:
        """Members with the grandparent role."""
        members_db = self._members_query(group_id).filter(
            UserDB.role == UserRole.GRANDPARENT.value
        ).all()
        return [m.to_profile() for m in members_db]

    def get_member_answer_stats(self, group_id: str) -> List[MemberAnswerStats]:
        """Answer counts per member, restricted to quizzes of this group."""
        group_quiz_ids = select(QuizDB.id).where(QuizDB.group_id == group_id)
        rows = (
            self.db.query(
                GroupMemberDB.user_id,
                UserDB.display_name,
                func.count(AnswerDB.id),
                func.coalesce(func.sum(case((AnswerDB.is_correct.is_(True), 1), else_=0)), 0),
            )
            .join(UserDB, UserDB.id == GroupMemberDB.user_id)
            .outerjoin(
                AnswerDB,
                and_(
                    AnswerDB.family_member_id == GroupMemberDB.user_id,
                    AnswerDB.quiz_id.in_(group_quiz_ids),
                ),
            )
            .filter(GroupMemberDB.group_id == group_id)
            .group_by(GroupMemberDB.user_id, UserDB.display_name, GroupMemberDB.joined_at)
            .order_by(GroupMemberDB.joined_at)
            .all()
        )
        return [
            MemberAnswerStats(
                user_id=user_id,
                display_name=display_name or "",
                total_answers=int(total or 0),
                correct_answers=int(correct or 0),
            )
            for user_id, display_name, total, correct in rows
        ]
