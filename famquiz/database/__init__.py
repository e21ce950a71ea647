"""Persistence layer for famquiz (SQLAlchemy models and repositories)."""
