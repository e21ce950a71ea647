"""Builders for LINE message payloads sent by famquiz."""

import os
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")


def _text(text: str) -> Dict:
    return {"type": "text", "text": text}


def quiz_answer_url() -> str:
    return f"{FRONTEND_URL.rstrip('/')}/quiz"


def build_emergency_alert_message(grandparent_name: str) -> List[Dict]:
    """Flex bubble broadcast when a grandparent presses the emergency button."""
    return [
        {
            "type": "flex",
            "altText": f"[Emergency] {grandparent_name} needs to reach you",
            "contents": {
                "type": "bubble",
                "size": "mega",
                "header": {
                    "type": "box",
                    "layout": "vertical",
                    "backgroundColor": "#DC143C",
                    "paddingAll": "20px",
                    "contents": [
                        {"type": "text", "text": "Emergency", "weight": "bold", "color": "#ffffff", "size": "xl"},
                    ],
                },
                "body": {
                    "type": "box",
                    "layout": "vertical",
                    "paddingAll": "20px",
                    "contents": [
                        {"type": "text", "text": f"From {grandparent_name}", "size": "sm", "color": "#999999"},
                        {"type": "text", "text": "needs to reach you urgently", "size": "xl",
                         "weight": "bold", "margin": "md", "wrap": True},
                        {"type": "separator", "margin": "xl"},
                        {"type": "text", "text": "Please check in and get in touch right away.",
                         "size": "md", "wrap": True, "margin": "xl", "color": "#333333"},
                    ],
                },
            },
        }
    ]


def build_quiz_notification_message(question_text: str, grandparent_name: str = "") -> List[Dict]:
    """Text sent to family members when a new quiz is posted."""
    author = f" from {grandparent_name}" if grandparent_name else ""
    return [_text(f"A new quiz{author} has arrived!\n\n{question_text}\n\nAnswer here: {quiz_answer_url()}")]


def build_no_quiz_alert_message(days_since_last_quiz: float) -> List[Dict]:
    """Text sent to family members when no quiz was posted for too long."""
    return [
        _text(
            f"It has been {days_since_last_quiz:.1f} days since the last quiz. "
            "Why not give them a call to check in?"
        )
    ]


def build_grandparent_reminder_message(days_since_last_quiz: float) -> List[Dict]:
    """Text sent to grandparents shortly before the family gets a no-quiz alert."""
    return [
        _text(
            f"It has been {days_since_last_quiz:.1f} days since your last quiz. "
            f"Your family is waiting for the next one!\n\nCreate a quiz: {FRONTEND_URL.rstrip('/')}/quiz/new"
        )
    ]


def build_request_notification_message(requester_name: str, content: str) -> List[Dict]:
    """Text sent to grandparents when a family member spends points on a request."""
    return [_text(f"{requester_name or 'Your family'} sent you a request:\n\n{content}")]


def build_request_fulfilled_message(request_content: str, question_text: str) -> List[Dict]:
    """Text sent to a requester when a new quiz fulfils their quiz request."""
    return [
        _text(
            f"Your quiz request \"{request_content}\" was answered with a new quiz:\n\n"
            f"{question_text}\n\nAnswer here: {quiz_answer_url()}"
        )
    ]
