"""Database models, repository and connection management."""
