"""Database access layer — views for reads, stored procedure for writes."""

from .connection import get_connection, get_cursor

__all__ = ["get_connection", "get_cursor"]
