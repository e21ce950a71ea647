"""Repository for Quiz, QuizOption and Answer database operations."""

import logging
from typing import List, Optional, Tuple
from sqlalchemy import desc, exists, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from famquiz.models.quiz import Answer, NewQuizOption, Quiz, QuizOption
from famquiz.database.interfaces import DuplicateAnswerError
from famquiz.database.models import AnswerDB, QuizDB, QuizOptionDB

logger = logging.getLogger(__name__)


class QuizRepository:
    """Repository for Quiz database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, group_id: str, grandparent_id: str, question_text: str, options: List[NewQuizOption]) -> Quiz:
        """Create a quiz together with its options in one commit."""
        try:
            quiz_db = QuizDB(
                group_id=group_id,
                grandparent_id=grandparent_id,
                question_text=question_text,
            )
            quiz_db.options = [
                QuizOptionDB(option_text=option.option_text, is_correct=option.is_correct, position=index)
                for index, option in enumerate(options)
            ]
            self.db.add(quiz_db)
            self.db.commit()
            self.db.refresh(quiz_db)
            logger.debug(f"Created quiz {quiz_db.id} in group {group_id}: {question_text[:50]}")
            return quiz_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create quiz in group {group_id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, quiz_id: str) -> Optional[Quiz]:
        """Get quiz (with options) by ID."""
        quiz_db = (
            self.db.query(QuizDB)
            .options(selectinload(QuizDB.options), joinedload(QuizDB.grandparent))
            .filter(QuizDB.id == quiz_id)
            .first()
        )
        return quiz_db.to_pydantic() if quiz_db else None

    def get_option(self, option_id: str) -> Optional[QuizOption]:
        """Get a quiz option by ID."""
        option_db = self.db.query(QuizOptionDB).filter(QuizOptionDB.id == option_id).first()
        return option_db.to_pydantic() if option_db else None

    def get_answer(self, quiz_id: str, user_id: str) -> Optional[Answer]:
        """Get the answer of a user to a quiz, if any."""
        answer_db = self.db.query(AnswerDB).filter(
            AnswerDB.quiz_id == quiz_id,
            AnswerDB.family_member_id == user_id,
        ).first()
        return answer_db.to_pydantic() if answer_db else None

    def create_answer(
        self,
        quiz_id: str,
        family_member_id: str,
        selected_option_id: str,
        is_correct: bool,
        message: Optional[str] = None,
    ) -> Answer:
        """Persist an answer.

        Raises:
            DuplicateAnswerError: If (quiz_id, family_member_id) already has an answer
        """
        try:
            answer_db = AnswerDB(
                quiz_id=quiz_id,
                family_member_id=family_member_id,
                selected_option_id=selected_option_id,
                is_correct=is_correct,
                message=message,
            )
            self.db.add(answer_db)
            self.db.commit()
            self.db.refresh(answer_db)
            logger.debug(f"Created answer {answer_db.id} for quiz {quiz_id} by user {family_member_id}")
            return answer_db.to_pydantic()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Duplicate answer rejected for quiz {quiz_id} by user {family_member_id}")
            raise DuplicateAnswerError(f"User {family_member_id} already answered quiz {quiz_id}") from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create answer for quiz {quiz_id}: {type(e).__name__}: {str(e)}")
            raise

    def get_pending_for_user(self, user_id: str, group_id: str) -> Optional[Quiz]:
        """Newest quiz in the group that the user has not answered and did not author."""
        answered = exists().where(
            and_(AnswerDB.quiz_id == QuizDB.id, AnswerDB.family_member_id == user_id)
        )
        quiz_db = (
            self.db.query(QuizDB)
            .options(selectinload(QuizDB.options), joinedload(QuizDB.grandparent))
            .filter(
                QuizDB.group_id == group_id,
                QuizDB.grandparent_id != user_id,
                ~answered,
            )
            .order_by(desc(QuizDB.created_at))
            .first()
        )
        return quiz_db.to_pydantic() if quiz_db else None

    def get_history(self, group_id: str, page: int, limit: int) -> Tuple[List[Quiz], int]:
        """Quizzes of a group, newest first, with answers (1-based page)."""
        total = self.db.query(QuizDB).filter(QuizDB.group_id == group_id).count()
        quizzes_db = (
            self.db.query(QuizDB)
            .options(
                selectinload(QuizDB.options),
                joinedload(QuizDB.grandparent),
                selectinload(QuizDB.answers).joinedload(AnswerDB.family_member),
            )
            .filter(QuizDB.group_id == group_id)
            .order_by(desc(QuizDB.created_at))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [quiz_db.to_pydantic(include_answers=True) for quiz_db in quizzes_db], total
