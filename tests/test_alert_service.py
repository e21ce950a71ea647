"""Tests for grandparent emergency alerts."""

from unittest.mock import MagicMock

import pytest

from famquiz.models.alert import AlertType
from famquiz.services.alert_service import AlertService
from famquiz.services.errors import ErrorKind, ServiceError


@pytest.fixture
def alert_service(user_repository, group_repository, alert_repository, messenger):
    return AlertService(user_repository, group_repository, alert_repository, messenger)


def test_emergency_is_recorded_and_broadcast(alert_service, alert_repository, make_group, grandparent, make_user,
                                             messenger):
    group = make_group(grandparent, [make_user("U-hana", "Hana"), make_user("U-ken", "Ken")])

    alert = alert_service.send_emergency_alert(grandparent.id)

    assert alert.type == AlertType.EMERGENCY.value
    assert alert.triggered_by_user_id == grandparent.id
    assert alert_repository.get_latest(group.id, AlertType.EMERGENCY).id == alert.id
    assert sorted(messenger.recipients()) == ["U-hana", "U-ken"]
    assert messenger.pushes[0]["messages"][0]["type"] == "flex"


def test_family_member_cannot_send(alert_service, family_group, family_member, messenger):
    with pytest.raises(ServiceError) as exc_info:
        alert_service.send_emergency_alert(family_member.id)
    assert exc_info.value.kind == ErrorKind.FORBIDDEN
    assert messenger.pushes == []


def test_requires_group(alert_service, grandparent):
    with pytest.raises(ServiceError) as exc_info:
        alert_service.send_emergency_alert(grandparent.id)
    assert exc_info.value.kind == ErrorKind.BAD_REQUEST


def test_broadcast_failure_keeps_history(user_repository, group_repository, alert_repository, family_group,
                                         grandparent):
    messenger = MagicMock()
    messenger.send_bulk.side_effect = RuntimeError("LINE is down")
    service = AlertService(user_repository, group_repository, alert_repository, messenger)

    alert = service.send_emergency_alert(grandparent.id)

    assert alert_repository.get_latest(family_group.id, AlertType.EMERGENCY).id == alert.id
