from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from issue_reporter.database.config import Base


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)


class Issue(Base):
    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    platform = Column(String, nullable=False)
    product_category = Column(String, nullable=False)
    severity = Column(String, nullable=False)
    frequency = Column(String, nullable=False)
    custom_frequency_description = Column(Text, nullable=True)
    reproducible = Column(String, nullable=False)
    reproduction_steps = Column(Text, nullable=False)
    expected_behavior = Column(Text, nullable=True)
    actual_behavior = Column(Text, nullable=False)
    software_version = Column(String, nullable=False)
    operating_system = Column(String, nullable=True)
    os_version = Column(String, nullable=True)
    additional_environment = Column(Text, nullable=True)
    reported_by = Column(String, nullable=False)

    ticket_id = Column(String, nullable=True)
    status = Column(String, nullable=False, default="submitted")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    media = relationship("Media", back_populates="issue", order_by="Media.id")


class Media(Base):
    __tablename__ = "media"

    id = Column(Integer, primary_key=True, autoincrement=True)
    issue_id = Column(Integer, ForeignKey("issues.id"), nullable=False, index=True)
    type = Column(String, nullable=False)  # photo, video, audio, file
    filename = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    transcription = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    issue = relationship("Issue", back_populates="media")
