"""SQLAlchemy models for local client storage."""

from cakeout.models.stored_value import StoredValue

__all__ = ["StoredValue"]
