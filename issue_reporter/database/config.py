import os

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from fastapi import Request

# Empty selects the in-memory store
DATABASE_URL = os.getenv("DATABASE_URL", "")


# Base class for models
class Base(DeclarativeBase):
    pass


def build_store(database_url: str = DATABASE_URL):
    """Construct the store for this process; called once at start-up."""
    from issue_reporter.database.storage import MemStorage, SqlStorage

    if not database_url:
        return MemStorage()

    engine = create_engine(database_url, echo=False)
    return SqlStorage(engine, sessionmaker(bind=engine, expire_on_commit=False))


# Dependency to get the store constructed for this app
def get_store(request: Request):
    return request.app.state.store
