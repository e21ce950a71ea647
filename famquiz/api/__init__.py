"""HTTP API for famquiz."""
