"""Tests for point-costing requests."""

import pytest

from famquiz.database.models import QuizRequestDB
from famquiz.services.errors import ErrorKind, ServiceError
from famquiz.services.request_service import RequestService


@pytest.fixture
def request_service(user_repository, group_repository, request_repository, messenger):
    return RequestService(user_repository, group_repository, request_repository, messenger)


class TestSendRequest:
    def test_insufficient_points_changes_nothing(self, request_service, family_group, family_member,
                                                 user_repository, db_session, messenger):
        user_repository.add_points(family_member.id, 9)

        with pytest.raises(ServiceError) as exc_info:
            request_service.send_request(family_member.id, "quiz", "About Kyoto")

        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_POINTS
        assert user_repository.get(family_member.id).points == 9
        assert db_session.query(QuizRequestDB).count() == 0
        assert messenger.pushes == []

    def test_quiz_request_spends_ten_points(self, request_service, family_group, family_member,
                                            user_repository, request_repository, messenger):
        user_repository.add_points(family_member.id, 15)

        request, remaining = request_service.send_request(family_member.id, "quiz", "  About Kyoto  ")

        assert remaining == 5
        assert user_repository.get(family_member.id).points == 5
        assert request.content == "About Kyoto"
        assert request.is_handled is False
        assert [r.id for r in request_repository.list_pending_quiz_requests(family_group.id)] == [request.id]
        # quiz requests wait for the next quiz
        assert messenger.pushes == []

    def test_other_request_notifies_grandparents(self, request_service, family_group, family_member,
                                                 user_repository, messenger):
        user_repository.add_points(family_member.id, 10)

        _, remaining = request_service.send_request(family_member.id, "other", "Please call me")

        assert remaining == 0
        assert messenger.recipients() == ["U-grandma"]
        assert "Please call me" in messenger.pushes[0]["messages"][0]["text"]

    @pytest.mark.parametrize(
        "request_type, content, field",
        [("poem", "Hi", "requestType"), (None, "Hi", "requestType"), ("quiz", "   ", "content"),
         ("quiz", "x" * 201, "content")],
    )
    def test_validation(self, request_service, family_group, family_member, user_repository,
                        request_type, content, field):
        user_repository.add_points(family_member.id, 20)

        with pytest.raises(ServiceError) as exc_info:
            request_service.send_request(family_member.id, request_type, content)

        assert exc_info.value.kind == ErrorKind.BAD_REQUEST
        assert exc_info.value.field == field
        assert user_repository.get(family_member.id).points == 20

    def test_requires_group(self, request_service, family_member, user_repository):
        user_repository.add_points(family_member.id, 20)
        with pytest.raises(ServiceError) as exc_info:
            request_service.send_request(family_member.id, "quiz", "About Kyoto")
        assert exc_info.value.kind == ErrorKind.BAD_REQUEST
        assert user_repository.get(family_member.id).points == 20


class TestPendingRequests:
    def test_oldest_first_with_requester(self, request_service, family_group, family_member, grandparent,
                                         request_repository, user_repository):
        user_repository.add_points(family_member.id, 30)
        first, _ = request_service.send_request(family_member.id, "quiz", "About Kyoto")
        request_service.send_request(family_member.id, "other", "Call me")
        second, _ = request_service.send_request(family_member.id, "quiz", "About cats")

        pending = request_service.get_pending_quiz_requests(grandparent.id)

        assert [r.id for r in pending] == [first.id, second.id]
        assert pending[0].requester_name == "Taro"
