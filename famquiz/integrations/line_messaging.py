"""LINE Messaging API client for push notifications."""

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

import requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

LINE_API_BASE = "https://api.line.me/v2/bot"
LINE_PUSH_TIMEOUT_SEC = 10
_PLACEHOLDER_TOKEN = "YOUR_CHANNEL_ACCESS_TOKEN_HERE"


class LineMessagingError(Exception):
    """Raised when a push message is rejected or cannot be delivered."""


@dataclass(frozen=True)
class BulkSendResult:
    """Outcome counts of a sequential bulk send."""
    success_count: int = 0
    failure_count: int = 0


class LineMessagingClient:
    """Client for the LINE Messaging API push endpoint."""

    def __init__(self, channel_access_token: Optional[str] = None):
        """Initialize the client.

        Args:
            channel_access_token: Channel access token. If None, reads LINE_CHANNEL_ACCESS_TOKEN.
        """
        self.channel_access_token = (
            channel_access_token if channel_access_token is not None
            else os.getenv("LINE_CHANNEL_ACCESS_TOKEN", "")
        )

    @property
    def configured(self) -> bool:
        return bool(self.channel_access_token) and self.channel_access_token != _PLACEHOLDER_TOKEN

    def push_message(self, line_user_id: str, messages: List[Dict]) -> None:
        """Push messages to one LINE user.

        Without a configured token the send is skipped with a warning.

        Raises:
            LineMessagingError: If the API call fails
        """
        if not self.configured:
            logger.warning("LINE_CHANNEL_ACCESS_TOKEN is not set; skipping message send")
            return

        try:
            response = requests.post(
                f"{LINE_API_BASE}/message/push",
                headers={
                    "Authorization": f"Bearer {self.channel_access_token}",
                    "Content-Type": "application/json",
                },
                json={"to": line_user_id, "messages": messages},
                timeout=LINE_PUSH_TIMEOUT_SEC,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"LINE push to {line_user_id} failed: {type(e).__name__}: {str(e)}")
            raise LineMessagingError(f"Failed to push LINE message: {e}") from e

        logger.debug(f"LINE push to {line_user_id} succeeded")

    def send_bulk(self, line_user_ids: List[str], messages: List[Dict]) -> BulkSendResult:
        """Push the same messages to several users, one at a time.

        A failed recipient is counted and does not stop the loop.
        """
        success_count = 0
        failure_count = 0
        for line_user_id in line_user_ids:
            try:
                self.push_message(line_user_id, messages)
                success_count += 1
            except LineMessagingError:
                failure_count += 1
        return BulkSendResult(success_count=success_count, failure_count=failure_count)


class Messenger(Protocol):
    """Shape of the push client the services depend on."""

    def push_message(self, line_user_id: str, messages: List[Dict]) -> None: ...

    def send_bulk(self, line_user_ids: List[str], messages: List[Dict]) -> BulkSendResult: ...
