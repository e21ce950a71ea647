"""Per-request wiring of repositories into services."""

from fastapi import Depends
from sqlalchemy.orm import Session

from famquiz.database.alert_repository import AlertRepository
from famquiz.database.database import get_db
from famquiz.database.group_repository import GroupRepository
from famquiz.database.quiz_repository import QuizRepository
from famquiz.database.request_repository import RequestRepository
from famquiz.database.user_repository import UserRepository
from famquiz.integrations.line_messaging import LineMessagingClient
from famquiz.services.alert_service import AlertService
from famquiz.services.auth_service import AuthService
from famquiz.services.group_service import GroupService
from famquiz.services.quiz_service import QuizService
from famquiz.services.request_service import RequestService


def get_messenger() -> LineMessagingClient:
    return LineMessagingClient()


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(UserRepository(db))


def get_group_service(db: Session = Depends(get_db)) -> GroupService:
    return GroupService(GroupRepository(db))


def get_quiz_service(
    db: Session = Depends(get_db),
    messenger: LineMessagingClient = Depends(get_messenger),
) -> QuizService:
    return QuizService(
        user_repository=UserRepository(db),
        group_repository=GroupRepository(db),
        quiz_repository=QuizRepository(db),
        request_repository=RequestRepository(db),
        messenger=messenger,
    )


def get_alert_service(
    db: Session = Depends(get_db),
    messenger: LineMessagingClient = Depends(get_messenger),
) -> AlertService:
    return AlertService(
        user_repository=UserRepository(db),
        group_repository=GroupRepository(db),
        alert_repository=AlertRepository(db),
        messenger=messenger,
    )


def get_request_service(
    db: Session = Depends(get_db),
    messenger: LineMessagingClient = Depends(get_messenger),
) -> RequestService:
    return RequestService(
        user_repository=UserRepository(db),
        group_repository=GroupRepository(db),
        request_repository=RequestRepository(db),
        messenger=messenger,
    )
