"""Core data models for the job agent.

Models are frozen. JSON keys use the camelCase names the completion endpoint
is prompted with (``workExperience``, ``relevanceScore`` ...); Python code uses
the snake_case attribute names.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

StepStatus = Literal["pending", "in_progress", "completed", "failed"]
Tone = Literal["formal", "friendly"]
Language = Literal["english", "french"]


def _as_text(value: Any) -> str:
    """Coerce loosely typed model output into a string ("" for null)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _as_text_list(value: Any) -> list[str]:
    """Coerce to a list of strings; anything that is not a list becomes []."""
    if not isinstance(value, list):
        return []
    return [_as_text(item) for item in value if isinstance(item, (str, int, float))]


def _as_object_list(value: Any) -> list[Any]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, (dict, BaseModel))]


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump using camelCase keys and JSON-safe values."""
        return self.model_dump(by_alias=True, mode="json")


class WorkExperience(_WireModel):
    company: str = ""
    position: str = ""
    duration: str = ""
    responsibilities: list[str] = Field(default_factory=list)

    @field_validator("company", "position", "duration", mode="before")
    @classmethod
    def text_field(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("responsibilities", mode="before")
    @classmethod
    def text_list_field(cls, v: Any) -> list[str]:
        return _as_text_list(v)


class Education(_WireModel):
    degree: str = ""
    institution: str = ""
    year: str = ""

    @field_validator("degree", "institution", "year", mode="before")
    @classmethod
    def text_field(cls, v: Any) -> str:
        return _as_text(v)


class ResumeRecord(_WireModel):
    """Structured resume data.

    Every sequence field is always a list after validation: absent or
    malformed input becomes ``[]`` and a missing summary becomes ``""``.
    """

    skills: list[str] = Field(default_factory=list)
    work_experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    roles_of_interest: list[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator("skills", "roles_of_interest", mode="before")
    @classmethod
    def text_list_field(cls, v: Any) -> list[str]:
        return _as_text_list(v)

    @field_validator("work_experience", "education", mode="before")
    @classmethod
    def object_list_field(cls, v: Any) -> list[Any]:
        return _as_object_list(v)

    @field_validator("summary", mode="before")
    @classmethod
    def summary_text(cls, v: Any) -> str:
        return _as_text(v)


class JobListing(_WireModel):
    """A job listing with a populated relevance score."""

    id: str = ""
    title: str = ""
    company: str = ""
    location: str = ""
    description: str = ""
    salary: str | None = None
    url: str = ""
    relevance_score: int = Field(ge=0, le=100)
    posted_date: str = ""
    requirements: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)

    @field_validator(
        "id", "title", "company", "location", "description", "url", "posted_date",
        mode="before",
    )
    @classmethod
    def text_field(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("salary", mode="before")
    @classmethod
    def optional_text(cls, v: Any) -> str | None:
        return None if v is None else _as_text(v)

    @field_validator("requirements", "benefits", mode="before")
    @classmethod
    def text_list_field(cls, v: Any) -> list[str]:
        return _as_text_list(v)


class AgentStep(_WireModel):
    """One progress step of a job search. Identity is ``id``."""

    id: str
    step: str
    status: StepStatus = "pending"
    description: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    details: str | None = None


class CoverLetterOptions(_WireModel):
    """Style options for one cover letter generation."""

    tone: Tone = "formal"
    language: Language = "english"
