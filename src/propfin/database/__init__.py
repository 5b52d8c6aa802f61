"""Database layer for propfin application."""

from propfin.database.base import Database
from propfin.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
