"""Issue, media and user stores.

The application constructs exactly one store at start-up and hands it to the
request handlers; nothing else reads or writes it.
"""

import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from issue_reporter.database import models
from issue_reporter.database.config import Base
from issue_reporter.schemas import (
    Issue,
    IssueCreate,
    IssueStatus,
    Media,
    MediaCreate,
    User,
    UserCreate,
)

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(IssueCreate.model_fields)


class StoreError(Exception):
    """Raised when a write would break a store invariant."""

    pass


class IssueNotFoundError(StoreError):
    """Raised when a write references an issue that does not exist."""

    def __init__(self, issue_id: int):
        self.issue_id = issue_id
        super().__init__(f"Issue {issue_id} not found")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def _check_updates(updates: dict[str, Any]) -> None:
    unknown = set(updates) - _UPDATABLE_FIELDS
    if unknown:
        raise StoreError(f"Cannot update fields: {', '.join(sorted(unknown))}")


class IssueStore:
    """Interface shared by the in-memory and SQL stores."""

    def open(self) -> None:
        """Prepare the backing storage."""

    def close(self) -> None:
        """Release the backing storage."""

    # User methods
    def get_user(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_user_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(self, user: UserCreate) -> User:
        raise NotImplementedError

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user when the password matches its stored hash."""
        user = self.get_user_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    # Issue methods
    def get_issue(self, issue_id: int) -> Optional[Issue]:
        raise NotImplementedError

    def get_issues(self) -> list[Issue]:
        raise NotImplementedError

    def create_issue(self, issue: IssueCreate) -> Issue:
        raise NotImplementedError

    def update_issue(self, issue_id: int, updates: dict[str, Any]) -> Optional[Issue]:
        raise NotImplementedError

    def attach_ticket(self, issue_id: int, ticket_id: str) -> Issue:
        """Record the ticket id and mark the issue processed.

        Raises:
            IssueNotFoundError: If the issue does not exist
            StoreError: If the issue already carries a ticket
        """
        raise NotImplementedError

    # Media methods
    def get_media_for_issue(self, issue_id: int) -> list[Media]:
        raise NotImplementedError

    def create_media(self, media: MediaCreate) -> Media:
        raise NotImplementedError


class MemStorage(IssueStore):
    """Keyed in-process collections; nothing survives a restart."""

    def __init__(self):
        self.users: dict[int, User] = {}
        self.issues: dict[int, Issue] = {}
        self.medias: dict[int, Media] = {}
        self._user_ids = itertools.count(1)
        self._issue_ids = itertools.count(1)
        self._media_ids = itertools.count(1)

    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((user for user in self.users.values() if user.username == username), None)

    def create_user(self, user: UserCreate) -> User:
        if self.get_user_by_username(user.username) is not None:
            raise StoreError(f"Username {user.username!r} already exists")

        new_user = User(
            id=next(self._user_ids),
            username=user.username,
            password_hash=hash_password(user.password),
        )
        self.users[new_user.id] = new_user
        return new_user

    def get_issue(self, issue_id: int) -> Optional[Issue]:
        return self.issues.get(issue_id)

    def get_issues(self) -> list[Issue]:
        return list(self.issues.values())

    def create_issue(self, issue: IssueCreate) -> Issue:
        new_issue = Issue(
            **issue.model_dump(),
            id=next(self._issue_ids),
            status=IssueStatus.SUBMITTED,
            ticket_id=None,
            created_at=datetime.now(timezone.utc),
        )
        self.issues[new_issue.id] = new_issue
        return new_issue

    def update_issue(self, issue_id: int, updates: dict[str, Any]) -> Optional[Issue]:
        _check_updates(updates)
        issue = self.issues.get(issue_id)
        if issue is None:
            return None

        updated = issue.model_copy(update=updates)
        self.issues[issue_id] = updated
        return updated

    def attach_ticket(self, issue_id: int, ticket_id: str) -> Issue:
        issue = self.issues.get(issue_id)
        if issue is None:
            raise IssueNotFoundError(issue_id)
        if issue.status is IssueStatus.PROCESSED:
            raise StoreError(f"Issue {issue_id} already has ticket {issue.ticket_id}")

        updated = issue.model_copy(update={"ticket_id": ticket_id, "status": IssueStatus.PROCESSED})
        self.issues[issue_id] = updated
        return updated

    def get_media_for_issue(self, issue_id: int) -> list[Media]:
        return [media for media in self.medias.values() if media.issue_id == issue_id]

    def create_media(self, media: MediaCreate) -> Media:
        if media.issue_id not in self.issues:
            raise IssueNotFoundError(media.issue_id)

        new_media = Media(
            **media.model_dump(),
            id=next(self._media_ids),
            created_at=datetime.now(timezone.utc),
        )
        self.medias[new_media.id] = new_media
        return new_media


class SqlStorage(IssueStore):
    """Relational store backed by SQLAlchemy, selected by ``DATABASE_URL``."""

    def __init__(self, engine, session_factory):
        self.engine = engine
        self.session_factory = session_factory

    def open(self) -> None:
        Base.metadata.create_all(self.engine)
        logger.info("Database tables created", extra={"url": str(self.engine.url)})

    def close(self) -> None:
        self.engine.dispose()

    def get_user(self, user_id: int) -> Optional[User]:
        with self.session_factory() as db:
            user = db.get(models.User, user_id)
            return User.model_validate(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self.session_factory() as db:
            user = db.scalars(select(models.User).where(models.User.username == username)).first()
            return User.model_validate(user) if user else None

    def create_user(self, user: UserCreate) -> User:
        with self.session_factory() as db:
            new_user = models.User(username=user.username, password_hash=hash_password(user.password))
            db.add(new_user)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise StoreError(f"Username {user.username!r} already exists") from exc
            db.refresh(new_user)
            return User.model_validate(new_user)

    def get_issue(self, issue_id: int) -> Optional[Issue]:
        with self.session_factory() as db:
            issue = db.get(models.Issue, issue_id)
            return Issue.model_validate(issue) if issue else None

    def get_issues(self) -> list[Issue]:
        with self.session_factory() as db:
            result = db.scalars(select(models.Issue).order_by(models.Issue.id))
            return [Issue.model_validate(issue) for issue in result.all()]

    def create_issue(self, issue: IssueCreate) -> Issue:
        with self.session_factory() as db:
            new_issue = models.Issue(
                **issue.model_dump(mode="json"),
                status=IssueStatus.SUBMITTED.value,
                ticket_id=None,
            )
            db.add(new_issue)
            db.commit()
            db.refresh(new_issue)
            return Issue.model_validate(new_issue)

    def update_issue(self, issue_id: int, updates: dict[str, Any]) -> Optional[Issue]:
        _check_updates(updates)
        with self.session_factory() as db:
            issue = db.get(models.Issue, issue_id)
            if issue is None:
                return None

            for field, value in updates.items():
                setattr(issue, field, getattr(value, "value", value))
            db.commit()
            db.refresh(issue)
            return Issue.model_validate(issue)

    def attach_ticket(self, issue_id: int, ticket_id: str) -> Issue:
        with self.session_factory() as db:
            issue = db.get(models.Issue, issue_id)
            if issue is None:
                raise IssueNotFoundError(issue_id)
            if issue.status == IssueStatus.PROCESSED.value:
                raise StoreError(f"Issue {issue_id} already has ticket {issue.ticket_id}")

            issue.ticket_id = ticket_id
            issue.status = IssueStatus.PROCESSED.value
            db.commit()
            db.refresh(issue)
            return Issue.model_validate(issue)

    def get_media_for_issue(self, issue_id: int) -> list[Media]:
        with self.session_factory() as db:
            result = db.scalars(
                select(models.Media).where(models.Media.issue_id == issue_id).order_by(models.Media.id)
            )
            return [Media.model_validate(media) for media in result.all()]

    def create_media(self, media: MediaCreate) -> Media:
        with self.session_factory() as db:
            if db.get(models.Issue, media.issue_id) is None:
                raise IssueNotFoundError(media.issue_id)

            new_media = models.Media(**media.model_dump(mode="json"))
            db.add(new_media)
            db.commit()
            db.refresh(new_media)
            return Media.model_validate(new_media)
