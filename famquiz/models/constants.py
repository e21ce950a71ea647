"""Constants for famquiz.

This module centralizes all magic numbers and default values used throughout the application.
"""


# Quizzes
QUESTION_TEXT_MAX_LENGTH = 100
MIN_OPTIONS = 2

# Groups
GROUP_CODE_LENGTH = 8
GROUP_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
GROUP_CODE_MAX_ATTEMPTS = 10
GROUP_PASSWORD_MIN_LENGTH = 8
MIN_ALERT_FREQUENCY_DAYS = 0.5
BCRYPT_ROUNDS = 10

# Points
POINTS_PER_CORRECT_ANSWER = 1
REQUEST_COST_POINTS = 10
REQUEST_CONTENT_MAX_LENGTH = 200

# Alerting
REMINDER_LEAD_FRACTION = 0.25
REMINDER_LEAD_FLOOR_DAYS = 3 / 24  # 3 hours

# History paging
DEFAULT_HISTORY_PAGE_SIZE = 10
MAX_HISTORY_PAGE_SIZE = 50
