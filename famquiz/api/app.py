"""FastAPI web application for famquiz."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from famquiz import __version__
from famquiz.api.dependencies import (
    get_alert_service,
    get_auth_service,
    get_group_service,
    get_quiz_service,
    get_request_service,
)
from famquiz.api.schemas import (
    AnswerRequest,
    AnswerResponse,
    GroupCreateRequest,
    GroupJoinRequest,
    GroupResponse,
    HealthResponse,
    HistoryAnswer,
    HistoryOption,
    HistoryQuiz,
    LineLoginRequest,
    LoginResponse,
    MeResponse,
    MemberStat,
    MemberStatsResponse,
    PendingOption,
    PendingQuizResponse,
    PendingRequest,
    PendingRequestsResponse,
    PersonRef,
    ProfileResponse,
    ProfileUpdateRequest,
    QuizCreateRequest,
    QuizCreateResponse,
    QuizHistoryResponse,
    RequestCreateRequest,
    RequestCreateResponse,
)
from famquiz.auth.dependencies import AUTH_COOKIE_NAME, get_current_user
from famquiz.auth.jwt import JWT_EXPIRATION_DAYS
from famquiz.database.database import engine, init_db
from famquiz.integrations.line_messages import FRONTEND_URL
from famquiz.jobs.quiz_alert_cron import ENABLE_SCHEDULER, start_quiz_alert_scheduler, stop_quiz_alert_scheduler
from famquiz.models.constants import DEFAULT_HISTORY_PAGE_SIZE
from famquiz.models.quiz import NewQuizOption, Quiz
from famquiz.models.user import User
from famquiz.services.alert_service import AlertService
from famquiz.services.auth_service import AuthService
from famquiz.services.errors import ErrorKind, ServiceError
from famquiz.services.group_service import GroupService
from famquiz.services.quiz_service import QuizService
from famquiz.services.request_service import RequestService

load_dotenv()

logger = logging.getLogger(__name__)

AUTH_COOKIE_SECURE = os.getenv("AUTH_COOKIE_SECURE", "false").lower() == "true"

STATUS_BY_ERROR_KIND = {
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INSUFFICIENT_POINTS: status.HTTP_400_BAD_REQUEST,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema and run the alert scheduler for the app's lifetime."""
    init_db()
    if ENABLE_SCHEDULER:
        start_quiz_alert_scheduler()
    else:
        logger.info("Quiz alert scheduler disabled")
    try:
        yield
    finally:
        await stop_quiz_alert_scheduler()
        engine.dispose()


# Initialize FastAPI app
app = FastAPI(
    title="famquiz API",
    description="Family check-in quizzes between grandparents and their family",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(
        status_code=STATUS_BY_ERROR_KIND[exc.kind],
        content={"detail": exc.message, "code": exc.kind.value, "field": exc.field},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc") or ("general",)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": first.get("msg", "Invalid request"),
            "code": ErrorKind.BAD_REQUEST.value,
            "field": str(loc[-1]),
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal Server Error"})


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        max_age=JWT_EXPIRATION_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=AUTH_COOKIE_SECURE,
        samesite="strict",
    )


def _person(user_id: str, display_name: Optional[str]) -> PersonRef:
    return PersonRef(id=user_id, display_name=display_name or "")


def _pending_quiz_response(quiz: Quiz) -> PendingQuizResponse:
    return PendingQuizResponse(
        quiz_id=quiz.id,
        question_text=quiz.question_text,
        options=[PendingOption(id=o.id, option_text=o.option_text) for o in quiz.options],
        grandparent=_person(quiz.grandparent_id, quiz.author_name),
        created_at=quiz.created_at,
    )


def _history_quiz(quiz: Quiz) -> HistoryQuiz:
    return HistoryQuiz(
        quiz_id=quiz.id,
        question_text=quiz.question_text,
        created_at=quiz.created_at,
        grandparent=_person(quiz.grandparent_id, quiz.author_name),
        options=[HistoryOption(id=o.id, option_text=o.option_text, is_correct=o.is_correct) for o in quiz.options],
        answers=[
            HistoryAnswer(
                answer_id=a.id,
                family_member=_person(a.family_member_id, a.family_member_name),
                selected_option_id=a.selected_option_id,
                is_correct=a.is_correct,
                message=a.message,
                created_at=a.created_at,
            )
            for a in quiz.answers
        ],
    )


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


# Auth

@app.post("/auth/line", response_model=LoginResponse)
def login_with_line(
    body: LineLoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Log in with LINE; the session token is set as an httpOnly cookie."""
    result = auth_service.login_with_line(code=body.code, id_token=body.id_token)
    _set_auth_cookie(response, result.token)
    return LoginResponse(is_new_user=result.is_new_user)


@app.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout():
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(AUTH_COOKIE_NAME, httponly=True, secure=AUTH_COOKIE_SECURE, samesite="strict")
    return response


@app.get("/users/me", response_model=MeResponse)
def get_me(
    current_user: User = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
):
    group_code = group_service.get_group_code(current_user.id)
    return MeResponse(
        user_id=current_user.id,
        line_id=current_user.line_id,
        display_name=current_user.display_name,
        role=current_user.role,
        points=current_user.points,
        has_group=group_code is not None,
        group_id=group_code,
    )


@app.put("/users/me/profile", response_model=ProfileResponse)
def update_profile(
    body: ProfileUpdateRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Set display name and role; the cookie is re-issued with the new role."""
    result = auth_service.update_profile(current_user.id, body.display_name, body.role)
    _set_auth_cookie(response, result.token)
    return ProfileResponse(user_id=result.user.id, display_name=result.user.display_name, role=result.user.role)


# Groups

@app.post("/groups", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    body: GroupCreateRequest,
    current_user: User = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
):
    group = group_service.create_new_group(current_user.id, body.group_name, body.password, body.alert_frequency_days)
    return GroupResponse(id=group.id, group_id=group.group_code, group_name=group.group_name)


@app.post("/groups/join", response_model=GroupResponse)
def join_group(
    body: GroupJoinRequest,
    current_user: User = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
):
    group = group_service.join_group(current_user.id, body.group_id, body.password)
    return GroupResponse(id=group.id, group_id=group.group_code, group_name=group.group_name)


@app.get("/groups/stats/members", response_model=MemberStatsResponse)
def get_member_stats(
    current_user: User = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
):
    stats = group_service.get_member_stats(current_user.id)
    return MemberStatsResponse(members=[MemberStat(**s) for s in stats])


# Quizzes

@app.post("/quizzes", response_model=QuizCreateResponse, status_code=status.HTTP_201_CREATED)
def create_quiz(
    body: QuizCreateRequest,
    current_user: User = Depends(get_current_user),
    quiz_service: QuizService = Depends(get_quiz_service),
):
    options = [NewQuizOption(option_text=o.option_text, is_correct=o.is_correct) for o in body.options]
    quiz = quiz_service.create_new_quiz(current_user.id, body.question_text, options)
    return QuizCreateResponse(quiz_id=quiz.id, message="Quiz created.")


@app.get("/quizzes/pending", response_model=Optional[PendingQuizResponse])
def get_pending_quiz(
    current_user: User = Depends(get_current_user),
    quiz_service: QuizService = Depends(get_quiz_service),
):
    """Next quiz to answer, or null when everything is answered."""
    quiz = quiz_service.get_pending_quiz(current_user.id)
    return _pending_quiz_response(quiz) if quiz else None


@app.get("/quizzes/history", response_model=QuizHistoryResponse)
def get_quiz_history(
    page: int = Query(1),
    limit: int = Query(DEFAULT_HISTORY_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    quiz_service: QuizService = Depends(get_quiz_service),
):
    quizzes, total = quiz_service.get_quiz_history(current_user.id, page, limit)
    return QuizHistoryResponse(quizzes=[_history_quiz(q) for q in quizzes], total=total, page=page, limit=limit)


@app.post("/quizzes/{quiz_id}/answer", response_model=AnswerResponse)
def answer_quiz(
    quiz_id: str,
    body: AnswerRequest,
    current_user: User = Depends(get_current_user),
    quiz_service: QuizService = Depends(get_quiz_service),
):
    result = quiz_service.answer_quiz(current_user.id, quiz_id, body.selected_option_id, body.message)
    return AnswerResponse(**result)


# Alerts

@app.post("/alerts/emergency", status_code=status.HTTP_204_NO_CONTENT)
def send_emergency_alert(
    current_user: User = Depends(get_current_user),
    alert_service: AlertService = Depends(get_alert_service),
):
    alert_service.send_emergency_alert(current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Requests

@app.post("/requests", response_model=RequestCreateResponse, status_code=status.HTTP_201_CREATED)
def send_request(
    body: RequestCreateRequest,
    current_user: User = Depends(get_current_user),
    request_service: RequestService = Depends(get_request_service),
):
    request, remaining = request_service.send_request(current_user.id, body.request_type, body.content)
    return RequestCreateResponse(request_id=request.id, remaining_points=remaining)


@app.get("/requests/pending", response_model=PendingRequestsResponse)
def get_pending_requests(
    current_user: User = Depends(get_current_user),
    request_service: RequestService = Depends(get_request_service),
):
    requests = request_service.get_pending_quiz_requests(current_user.id)
    return PendingRequestsResponse(
        requests=[
            PendingRequest(
                request_id=r.id,
                content=r.content,
                requester_name=r.requester_name or "",
                created_at=r.created_at,
            )
            for r in requests
        ]
    )
