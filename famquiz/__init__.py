"""famquiz: family check-in quizzes with missed-quiz alerts."""

__version__ = "0.1.0"
