"""LINE Login (OAuth2 / OpenID Connect) client for user authentication."""

import logging
import os
from typing import Optional, Dict

import requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# LINE Login configuration
LINE_LOGIN_CHANNEL_ID = os.getenv("LINE_LOGIN_CHANNEL_ID", "")
LINE_LOGIN_CHANNEL_SECRET = os.getenv("LINE_LOGIN_CHANNEL_SECRET", "")
LINE_LOGIN_REDIRECT_URI = os.getenv("LINE_LOGIN_REDIRECT_URI", "http://localhost:5173/auth/callback")

LINE_TOKEN_URL = "https://api.line.me/oauth2/v2.1/token"
LINE_VERIFY_URL = "https://api.line.me/oauth2/v2.1/verify"
LINE_HTTP_TIMEOUT_SEC = 10


def exchange_code_for_id_token(code: str) -> Optional[str]:
    """Exchange an authorization code for an ID token.

    Args:
        code: Authorization code from the LINE Login redirect

    Returns:
        The ID token string, or None if the exchange was rejected
    """
    try:
        response = requests.post(
            LINE_TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": LINE_LOGIN_REDIRECT_URI,
                "client_id": LINE_LOGIN_CHANNEL_ID,
                "client_secret": LINE_LOGIN_CHANNEL_SECRET,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=LINE_HTTP_TIMEOUT_SEC,
        )
    except requests.RequestException as e:
        logger.error(f"LINE token exchange failed: {type(e).__name__}: {str(e)}")
        return None

    if not response.ok:
        logger.warning(f"LINE token exchange rejected (status {response.status_code})")
        return None
    return response.json().get("id_token")


def verify_line_id_token(id_token: str) -> Optional[Dict]:
    """Verify a LINE ID token and extract user information.

    Args:
        id_token: ID token issued by LINE Login

    Returns:
        Dictionary with user info (line_id, display_name), or None if invalid
    """
    if not id_token:
        return None

    try:
        response = requests.post(
            LINE_VERIFY_URL,
            data={"id_token": id_token, "client_id": LINE_LOGIN_CHANNEL_ID},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=LINE_HTTP_TIMEOUT_SEC,
        )
    except requests.RequestException as e:
        logger.error(f"LINE ID token verification failed: {type(e).__name__}: {str(e)}")
        return None

    if not response.ok:
        logger.warning(f"LINE ID token rejected (status {response.status_code})")
        return None

    claims = response.json()
    # `sub` is the LINE user ID, shared with the Messaging API when the bot is linked
    if not claims.get("sub"):
        return None

    return {
        "line_id": claims["sub"],
        "display_name": claims.get("name") or "",
    }
