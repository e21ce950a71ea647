"""Pytest fixtures and configuration for famquiz tests."""

import os

# Must be set before famquiz modules read their configuration
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["LINE_CHANNEL_ACCESS_TOKEN"] = ""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from famquiz.auth.passwords import hash_password
from famquiz.database.alert_repository import AlertRepository
from famquiz.database.database import Base
from famquiz.database.group_repository import GroupRepository
from famquiz.database.models import QuizDB
from famquiz.database.quiz_repository import QuizRepository
from famquiz.database.request_repository import RequestRepository
from famquiz.database.user_repository import UserRepository
from famquiz.integrations.line_messaging import BulkSendResult, LineMessagingError
from famquiz.models.quiz import NewQuizOption
from famquiz.models.user import UserRole

# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"
GROUP_PASSWORD = "correct-horse"


class FakeMessenger:
    """Records pushes instead of calling LINE; ids in `failing_ids` fail."""

    def __init__(self, failing_ids=None):
        self.pushes: List[Dict] = []
        self.failing_ids = set(failing_ids or [])

    def push_message(self, line_user_id: str, messages: List[Dict]) -> None:
        if line_user_id in self.failing_ids:
            raise LineMessagingError(f"push to {line_user_id} failed")
        self.pushes.append({"to": line_user_id, "messages": messages})

    def send_bulk(self, line_user_ids: List[str], messages: List[Dict]) -> BulkSendResult:
        success = failure = 0
        for line_user_id in line_user_ids:
            try:
                self.push_message(line_user_id, messages)
                success += 1
            except LineMessagingError:
                failure += 1
        return BulkSendResult(success_count=success, failure_count=failure)

    def recipients(self) -> List[str]:
        return [push["to"] for push in self.pushes]


@pytest.fixture(scope="function")
def db_engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    from famquiz.database import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a database session for testing, fresh schema per test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_repository(db_session: Session):
    return UserRepository(db_session)


@pytest.fixture
def group_repository(db_session: Session):
    return GroupRepository(db_session)


@pytest.fixture
def quiz_repository(db_session: Session):
    return QuizRepository(db_session)


@pytest.fixture
def alert_repository(db_session: Session):
    return AlertRepository(db_session)


@pytest.fixture
def request_repository(db_session: Session):
    return RequestRepository(db_session)


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def make_messenger():
    """The FakeMessenger class, for tests that need failing recipients."""
    return FakeMessenger


@pytest.fixture(scope="session")
def group_password():
    """Password of every group built by `make_group`."""
    return GROUP_PASSWORD


@pytest.fixture(scope="session")
def group_password_hash(group_password):
    """Hashed once; bcrypt is deliberately slow."""
    return hash_password(group_password)


@pytest.fixture
def make_user(user_repository):
    def _make_user(line_id: str, display_name: str, role: Optional[UserRole] = UserRole.FAMILY):
        return user_repository.create(line_id, display_name, role)
    return _make_user


@pytest.fixture
def grandparent(make_user):
    return make_user("U-grandma", "Grandma", UserRole.GRANDPARENT)


@pytest.fixture
def family_member(make_user):
    return make_user("U-taro", "Taro", UserRole.FAMILY)


@pytest.fixture
def make_group(group_repository, group_password_hash):
    counter = {"n": 0}

    def _make_group(owner, members=(), alert_frequency_days: float = 2.0):
        counter["n"] += 1
        group = group_repository.create(
            group_code=f"GROUP{counter['n']:03d}",
            group_name=f"Family {counter['n']}",
            password_hash=group_password_hash,
            alert_frequency_days=alert_frequency_days,
        )
        group_repository.add_member(owner.id, group.id, is_owner=True)
        for member in members:
            group_repository.add_member(member.id, group.id, is_owner=False)
        return group
    return _make_group


@pytest.fixture
def family_group(make_group, grandparent, family_member):
    """Group owned by the grandparent with one family member."""
    return make_group(grandparent, [family_member])


@pytest.fixture
def make_quiz(quiz_repository, db_session):
    """Create a quiz; `age` backdates its creation time."""
    def _make_quiz(group, author, question_text: str = "Where did we go in 1985?",
                   age: Optional[timedelta] = None, created_at: Optional[datetime] = None):
        quiz = quiz_repository.create(
            group.id,
            author.id,
            question_text,
            [
                NewQuizOption(option_text="Kyoto", is_correct=True),
                NewQuizOption(option_text="Osaka", is_correct=False),
            ],
        )
        if age is not None or created_at is not None:
            when = created_at or datetime.utcnow() - age
            db_session.query(QuizDB).filter(QuizDB.id == quiz.id).update({QuizDB.created_at: when})
            db_session.commit()
            quiz = quiz_repository.get(quiz.id)
        return quiz
    return _make_quiz


class ActingUser:
    """Which seeded user the test client is authenticated as."""

    def __init__(self):
        self.user_id: Optional[str] = None


@pytest.fixture
def acting_user():
    return ActingUser()


@pytest.fixture
def test_client(db_session: Session, acting_user, messenger):
    """FastAPI test client with database, authentication and messenger overridden."""
    from famquiz.api.app import app
    from famquiz.api.dependencies import get_messenger
    from famquiz.auth.dependencies import get_current_user
    from famquiz.database.database import get_db

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # the db_session fixture closes it

    def override_get_current_user():
        from fastapi import HTTPException
        user = UserRepository(db_session).get(acting_user.user_id) if acting_user.user_id else None
        if not user:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_messenger] = lambda: messenger

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(db_session: Session, messenger):
    """Test client with the real cookie/bearer authentication."""
    from famquiz.api.app import app
    from famquiz.api.dependencies import get_messenger
    from famquiz.database.database import get_db

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_messenger] = lambda: messenger

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
