"""Background jobs started with the web application."""
