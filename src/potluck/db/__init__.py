"""Persistence layer (SQLAlchemy on SQLite)."""
