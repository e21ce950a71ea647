"""Business rules for famquiz, one service per area."""
