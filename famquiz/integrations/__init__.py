"""External service clients (LINE Messaging API)."""
