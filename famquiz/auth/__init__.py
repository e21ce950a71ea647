"""Authentication: LINE Login, session tokens and password hashing."""
