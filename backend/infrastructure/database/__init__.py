"""Database engine, sessions and ORM models."""

from .connection import Base, close_db, get_db, init_db

__all__ = ["Base", "get_db", "init_db", "close_db"]
