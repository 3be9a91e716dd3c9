"""Database models and connection management."""
