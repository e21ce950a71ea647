"""Tests for group creation, joining and member statistics."""

from unittest.mock import patch

import pytest

from famquiz.auth.passwords import verify_password
from famquiz.models.constants import GROUP_CODE_ALPHABET
from famquiz.models.user import UserRole
from famquiz.services.errors import ErrorKind, ServiceError
from famquiz.services.group_service import GroupService, correct_rate, generate_group_code


@pytest.fixture
def group_service(group_repository):
    return GroupService(group_repository)


def test_generate_group_code_shape():
    for _ in range(50):
        code = generate_group_code()
        assert len(code) == 8
        assert all(ch in GROUP_CODE_ALPHABET for ch in code)


def test_correct_rate_rounds_and_handles_zero():
    assert correct_rate(0, 0) == 0.0
    assert correct_rate(2, 3) == 0.67
    assert correct_rate(3, 3) == 1.0
    assert correct_rate(1, 8) == 0.13
    assert correct_rate(5, 8) == 0.63


class TestCreateGroup:
    def test_owner_membership_and_hashed_password(self, group_service, group_repository, grandparent):
        group = group_service.create_new_group(grandparent.id, " Tanaka family ", "longenough", 2)

        assert group.group_name == "Tanaka family"
        assert len(group.group_code) == 8
        assert group.password_hash != "longenough"
        assert verify_password("longenough", group.password_hash)
        membership = group_repository.get_membership(grandparent.id)
        assert membership.group_id == group.id
        assert membership.is_owner is True

    @pytest.mark.parametrize(
        "name, password, frequency, field",
        [
            ("", "longenough", 2, "groupName"),
            ("Family", "short", 2, "password"),
            ("Family", "longenough", 0.4, "alertFrequencyDays"),
            ("Family", "longenough", None, "alertFrequencyDays"),
            ("Family", "longenough", float("nan"), "alertFrequencyDays"),
            ("Family", "longenough", float("inf"), "alertFrequencyDays"),
        ],
    )
    def test_validation(self, group_service, grandparent, name, password, frequency, field):
        with pytest.raises(ServiceError) as exc_info:
            group_service.create_new_group(grandparent.id, name, password, frequency)
        assert exc_info.value.kind == ErrorKind.BAD_REQUEST
        assert exc_info.value.field == field

    def test_minimum_frequency_is_allowed(self, group_service, grandparent):
        assert group_service.create_new_group(grandparent.id, "Family", "longenough", 0.5).alert_frequency_days == 0.5

    def test_member_cannot_create_second_group(self, group_service, family_group, grandparent):
        with pytest.raises(ServiceError) as exc_info:
            group_service.create_new_group(grandparent.id, "Another", "longenough", 2)
        assert exc_info.value.kind == ErrorKind.BAD_REQUEST

    def test_code_collision_is_retried(self, group_service, family_group, make_user):
        owner = make_user("U-new", "New", UserRole.GRANDPARENT)
        codes = iter([family_group.group_code, "FRESH001"])
        with patch("famquiz.services.group_service.generate_group_code", side_effect=lambda: next(codes)):
            group = group_service.create_new_group(owner.id, "Other", "longenough", 2)
        assert group.group_code == "FRESH001"

    def test_code_generation_gives_up(self, group_service, family_group, make_user):
        owner = make_user("U-new", "New", UserRole.GRANDPARENT)
        with patch("famquiz.services.group_service.generate_group_code", return_value=family_group.group_code):
            with pytest.raises(RuntimeError):
                group_service.create_new_group(owner.id, "Other", "longenough", 2)


class TestJoinGroup:
    def test_join_with_code_and_password(self, group_service, group_repository, make_group, grandparent,
                                         family_member, group_password):
        group = make_group(grandparent)

        joined = group_service.join_group(family_member.id, group.group_code.lower(), group_password)

        assert joined.id == group.id
        membership = group_repository.get_member(family_member.id, group.id)
        assert membership.is_owner is False

    def test_wrong_password_and_wrong_code_look_the_same(self, group_service, make_group, grandparent,
                                                         family_member, group_password):
        group = make_group(grandparent)

        with pytest.raises(ServiceError) as wrong_password:
            group_service.join_group(family_member.id, group.group_code, "not-the-password")
        with pytest.raises(ServiceError) as wrong_code:
            group_service.join_group(family_member.id, "NOPE0000", group_password)

        assert wrong_password.value.kind == ErrorKind.NOT_FOUND
        assert wrong_code.value.kind == ErrorKind.NOT_FOUND
        assert wrong_password.value.message == wrong_code.value.message

    def test_already_member(self, group_service, family_group, family_member, group_password):
        with pytest.raises(ServiceError) as exc_info:
            group_service.join_group(family_member.id, family_group.group_code, group_password)
        assert exc_info.value.kind == ErrorKind.BAD_REQUEST

    def test_member_of_another_group(self, group_service, family_group, make_group, make_user, family_member,
                                     group_password):
        other = make_group(make_user("U-other", "Other", UserRole.GRANDPARENT))
        with pytest.raises(ServiceError) as exc_info:
            group_service.join_group(family_member.id, other.group_code, group_password)
        assert exc_info.value.kind == ErrorKind.BAD_REQUEST

    def test_missing_fields(self, group_service, family_member, group_password):
        with pytest.raises(ServiceError) as exc_info:
            group_service.join_group(family_member.id, "", group_password)
        assert exc_info.value.field == "groupId"


class TestMemberStats:
    def test_rates_sorted_descending(self, group_service, make_group, grandparent, make_user, make_quiz,
                                     quiz_repository):
        hana = make_user("U-hana", "Hana")
        ken = make_user("U-ken", "Ken")
        group = make_group(grandparent, [hana, ken])
        quizzes = [make_quiz(group, grandparent, question_text=f"Q{i}?") for i in range(3)]
        for quiz in quizzes:
            quiz_repository.create_answer(quiz.id, ken.id, quiz.options[0].id, True)
        quiz_repository.create_answer(quizzes[0].id, hana.id, quizzes[0].options[0].id, True)
        quiz_repository.create_answer(quizzes[1].id, hana.id, quizzes[1].options[1].id, False)
        quiz_repository.create_answer(quizzes[2].id, hana.id, quizzes[2].options[1].id, False)

        stats = group_service.get_member_stats(hana.id)

        assert [(s["display_name"], s["correct_rate"]) for s in stats] == [
            ("Ken", 1.0),
            ("Hana", 0.33),
            ("Grandma", 0.0),
        ]

    def test_requires_group(self, group_service, family_member):
        with pytest.raises(ServiceError) as exc_info:
            group_service.get_member_stats(family_member.id)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND
