"""Group creation, joining and member statistics."""

import logging
import math
import secrets
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from famquiz.auth.passwords import hash_password, verify_password
from famquiz.database.interfaces import GroupRepositoryInterface
from famquiz.models.constants import (
    GROUP_CODE_ALPHABET,
    GROUP_CODE_LENGTH,
    GROUP_CODE_MAX_ATTEMPTS,
    GROUP_PASSWORD_MIN_LENGTH,
    MIN_ALERT_FREQUENCY_DAYS,
)
from famquiz.models.group import Group
from famquiz.services.errors import ErrorKind, ServiceError, bad_request

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Group not found or password is incorrect."


def generate_group_code() -> str:
    """Random 8-character uppercase alphanumeric code."""
    random_bytes = secrets.token_bytes(GROUP_CODE_LENGTH)
    return "".join(GROUP_CODE_ALPHABET[b % len(GROUP_CODE_ALPHABET)] for b in random_bytes)


def correct_rate(correct_answers: int, total_answers: int) -> float:
    if total_answers == 0:
        return 0.0
    # Half-up, so 1/8 gives 0.13
    rate = Decimal(correct_answers) / Decimal(total_answers)
    return float(rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class GroupService:
    """Business rules for family groups."""

    def __init__(self, group_repository: GroupRepositoryInterface):
        self.groups = group_repository

    def _unique_group_code(self) -> str:
        for _ in range(GROUP_CODE_MAX_ATTEMPTS):
            code = generate_group_code()
            if not self.groups.get_by_code(code):
                return code
            logger.debug(f"Group code collision on {code}, retrying")
        raise RuntimeError(f"Could not generate a unique group code in {GROUP_CODE_MAX_ATTEMPTS} attempts")

    def create_new_group(
        self,
        user_id: str,
        group_name: Optional[str],
        password: Optional[str],
        alert_frequency_days: Optional[float],
    ) -> Group:
        """Create a group owned by the caller."""
        group_name = (group_name or "").strip()
        if not group_name:
            raise bad_request("groupName is required.", field="groupName")
        if not password or len(password) < GROUP_PASSWORD_MIN_LENGTH:
            raise bad_request(
                f"password must be at least {GROUP_PASSWORD_MIN_LENGTH} characters.", field="password"
            )
        if (
            alert_frequency_days is None
            or not math.isfinite(alert_frequency_days)
            or alert_frequency_days < MIN_ALERT_FREQUENCY_DAYS
        ):
            raise bad_request(
                f"alertFrequencyDays must be at least {MIN_ALERT_FREQUENCY_DAYS}.", field="alertFrequencyDays"
            )
        if self.groups.get_membership(user_id):
            raise bad_request("You already belong to a group.")

        group = self.groups.create(
            group_code=self._unique_group_code(),
            group_name=group_name,
            password_hash=hash_password(password),
            alert_frequency_days=float(alert_frequency_days),
        )
        self.groups.add_member(user_id, group.id, is_owner=True)
        logger.info(f"User {user_id} created group {group.id} ({group.group_code})")
        return group

    def join_group(self, user_id: str, group_code: Optional[str], password: Optional[str]) -> Group:
        """Join an existing group by code and password.

        A wrong code and a wrong password produce the same NOT_FOUND error.
        """
        group_code = (group_code or "").strip().upper()
        if not group_code:
            raise bad_request("groupId is required.", field="groupId")
        if not password:
            raise bad_request("password is required.", field="password")

        group = self.groups.get_by_code(group_code)
        if not group or not verify_password(password, group.password_hash):
            raise ServiceError(ErrorKind.NOT_FOUND, _INVALID_CREDENTIALS)

        if self.groups.get_member(user_id, group.id):
            raise bad_request("You are already a member of this group.")
        if self.groups.get_membership(user_id):
            raise bad_request("You already belong to a group.")

        self.groups.add_member(user_id, group.id, is_owner=False)
        logger.info(f"User {user_id} joined group {group.id}")
        return group

    def get_member_stats(self, user_id: str) -> List[Dict]:
        """Correct-answer rate of every member of the caller's group, best first."""
        membership = self.groups.get_membership(user_id)
        if not membership:
            raise ServiceError(ErrorKind.NOT_FOUND, "You are not a member of any group.")

        stats = [
            {
                "user_id": s.user_id,
                "display_name": s.display_name,
                "correct_rate": correct_rate(s.correct_answers, s.total_answers),
            }
            for s in self.groups.get_member_answer_stats(membership.group_id)
        ]
        # Stable sort keeps join order among ties
        stats.sort(key=lambda s: s["correct_rate"], reverse=True)
        return stats

    def get_group_code(self, user_id: str) -> Optional[str]:
        """Join code of the caller's group, or None."""
        membership = self.groups.get_membership(user_id)
        if not membership:
            return None
        group = self.groups.get(membership.group_id)
        return group.group_code if group else None
