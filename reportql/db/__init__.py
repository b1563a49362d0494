"""Database access: engine configuration, report model, runner and store."""

from reportql.db.base import Base, get_database_url, get_engine
from reportql.db.runner import SqlAlchemyRunner, to_named_binds
from reportql.db.store import SqlReportStore

__all__ = [
    "Base",
    "SqlAlchemyRunner",
    "SqlReportStore",
    "get_database_url",
    "get_engine",
    "to_named_binds",
]
