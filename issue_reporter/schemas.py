from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError


class ProductCategory(str, Enum):
    PEGASUS = "pegasus"
    PEGASUS_X = "pegasusX"
    MERCURY = "mercury"
    TITANIUM = "titanium"
    ANTALYA = "antalya"

class Severity(str, Enum):
    BLOCKER = "blocker"
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    TRIVIAL = "trivial"

class Frequency(str, Enum):
    ALWAYS = "always"
    OFTEN = "often"
    SOMETIMES = "sometimes"
    RARELY = "rarely"
    ONCE = "once"
    CUSTOM = "custom"

class Reproducible(str, Enum):
    YES = "yes"
    NO = "no"

class IssueStatus(str, Enum):
    SUBMITTED = "submitted"
    PROCESSED = "processed"

class MediaType(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"

    @classmethod
    def from_mime_type(cls, mime_type: str) -> "MediaType":
        if mime_type.startswith("image/"):
            return cls.PHOTO
        if mime_type.startswith("video/"):
            return cls.VIDEO
        if mime_type.startswith("audio/"):
            return cls.AUDIO
        return cls.FILE


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        loc_by_alias=False,
    )


class IssueCreate(CamelModel):
    """Fields a reporter supplies; the single source of truth for validation."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    platform: str = Field(min_length=1)
    product_category: ProductCategory
    severity: Severity
    frequency: Frequency
    # Declared after frequency so the validator can see it
    custom_frequency_description: Optional[str] = Field(None, validate_default=True)
    reproducible: Reproducible
    reproduction_steps: str = Field(min_length=1)
    expected_behavior: Optional[str] = None
    actual_behavior: str = Field(min_length=1)
    software_version: str = Field(min_length=1)
    operating_system: Optional[str] = None
    os_version: Optional[str] = None
    additional_environment: Optional[str] = None
    reported_by: str = Field(min_length=2)

    @field_validator("custom_frequency_description")
    @classmethod
    def require_custom_frequency_description(cls, value: Optional[str], info: ValidationInfo):
        if info.data.get("frequency") == Frequency.CUSTOM and not value:
            raise PydanticCustomError(
                "custom_frequency_required",
                "Please provide a description of the custom frequency",
            )
        return value

class IssueForm(IssueCreate):
    accept_terms: bool = Field(False, validate_default=True)

    @field_validator("accept_terms")
    @classmethod
    def require_accepted_terms(cls, value: bool):
        if value is not True:
            raise PydanticCustomError(
                "terms_not_accepted",
                "You must accept the terms to submit the form",
            )
        return value

class Issue(IssueCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: IssueStatus = IssueStatus.SUBMITTED
    ticket_id: Optional[str] = None
    created_at: datetime


class MediaCreate(CamelModel):
    issue_id: int
    type: MediaType
    filename: str
    file_path: str
    mime_type: str
    file_size: int = Field(ge=0)
    transcription: Optional[str] = None

class Media(MediaCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime


class UserCreate(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

class User(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    password_hash: str = Field(exclude=True)


class IssueDetail(CamelModel):
    issue: Issue
    media: list[Media]

class IssueCreated(CamelModel):
    issue: Issue
    message: str
    ticket_id: str
