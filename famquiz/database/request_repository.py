"""Repository for QuizRequest database operations."""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session, joinedload

from famquiz.models.request import QuizRequest, RequestType
from famquiz.database.models import QuizRequestDB, enum_to_value

logger = logging.getLogger(__name__)


class RequestRepository:
    """Repository for QuizRequest database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, group_id: str, request_type: RequestType, content: str) -> QuizRequest:
        """Create a new request."""
        try:
            request_db = QuizRequestDB(
                user_id=user_id,
                group_id=group_id,
                request_type=enum_to_value(request_type),
                content=content,
                is_handled=False,
            )
            self.db.add(request_db)
            self.db.commit()
            self.db.refresh(request_db)
            logger.debug(f"Created {request_db.request_type} request {request_db.id} by user {user_id}")
            return request_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create request for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def _pending_quiz_requests(self, group_id: str):
        return (
            self.db.query(QuizRequestDB)
            .options(joinedload(QuizRequestDB.user))
            .filter(
                QuizRequestDB.group_id == group_id,
                QuizRequestDB.request_type == RequestType.QUIZ.value,
                QuizRequestDB.is_handled.is_(False),
            )
            .order_by(QuizRequestDB.created_at)
        )

    def get_oldest_pending_quiz_request(self, group_id: str) -> Optional[QuizRequest]:
        """Oldest unhandled quiz-type request of a group."""
        request_db = self._pending_quiz_requests(group_id).first()
        return request_db.to_pydantic() if request_db else None

    def list_pending_quiz_requests(self, group_id: str) -> List[QuizRequest]:
        """Unhandled quiz-type requests of a group, oldest first."""
        return [request_db.to_pydantic() for request_db in self._pending_quiz_requests(group_id).all()]

    def mark_handled(self, request_id: str, quiz_id: str) -> Optional[QuizRequest]:
        """Link a request to the quiz that fulfilled it."""
        request_db = self.db.query(QuizRequestDB).filter(QuizRequestDB.id == request_id).first()
        if not request_db:
            return None

        request_db.is_handled = True
        request_db.handled_quiz_id = quiz_id
        try:
            self.db.commit()
            self.db.refresh(request_db)
            logger.debug(f"Request {request_id} handled by quiz {quiz_id}")
            return request_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to mark request {request_id} handled: {type(e).__name__}: {str(e)}")
            raise
