"""Database configuration, models, and issue stores."""

from issue_reporter.database.config import Base, build_store, get_store
from issue_reporter.database import models
from issue_reporter.database.storage import (
    IssueNotFoundError,
    IssueStore,
    MemStorage,
    SqlStorage,
    StoreError,
)

__all__ = [
    "Base",
    "build_store",
    "get_store",
    "models",
    "IssueNotFoundError",
    "IssueStore",
    "MemStorage",
    "SqlStorage",
    "StoreError",
]
