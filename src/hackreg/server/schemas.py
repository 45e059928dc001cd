"""Pydantic schemas for validation and API request/response models.

JSON bodies use camelCase keys; services work with snake_case attribute
dictionaries. Every model accepts both.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as SchemaValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy import inspect

from hackreg.core.types import (
    MAX_WAVE,
    DecisionStatus,
    Diet,
    Gender,
    ProfessionalInterest,
    ShirtSize,
    Transportation,
)
from hackreg.server.errors import ValidationError
from hackreg.server.models import Attendee, CheckIn, Mentor


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === Validation ===


def validate_attributes(
    model: type[BaseModel],
    data: Mapping[str, Any],
    prefix: str | None = None,
) -> dict[str, Any]:
    """Validate attributes against a schema.

    Args:
        model: Schema to validate against.
        data: Raw attributes (snake_case or camelCase keys).
        prefix: Prepended to every error source, e.g. ``"ideas"``.

    Returns:
        The validated attributes as a new snake_case dictionary with plain
        JSON values. Unknown keys are dropped.

    Raises:
        ValidationError: With one entry per failing field.
    """
    try:
        validated = model.model_validate(dict(data))
    except SchemaValidationError as e:
        errors = []
        for err in e.errors():
            loc = [str(part) for part in err["loc"]]
            if prefix:
                loc.insert(0, prefix)
            errors.append({"source": ".".join(loc), "message": err["msg"]})
        raise ValidationError("The request body failed validation", errors) from e
    return validated.model_dump(mode="json")


def column_attributes(obj: Any) -> dict[str, Any]:
    """Snapshot the column attributes of an ORM object into a new dict."""
    mapper = inspect(obj).mapper
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}


# === Mentor schemas ===


class MentorIdeaAttributes(CamelModel):
    """A mentor project idea."""

    link: str = Field(max_length=255)
    contributions: str = Field(max_length=255)
    ideas: str = Field(max_length=255)


class MentorAttributes(CamelModel):
    """Mentor registration fields."""

    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    shirt_size: ShirtSize
    github: str | None = Field(default=None, max_length=50)
    location: str = Field(max_length=255)
    summary: str = Field(max_length=255)
    occupation: str = Field(max_length=255)


class MentorIdeaPayload(CamelModel):
    """Idea as sent by clients; ``id`` marks an existing idea.

    Fields may be omitted for existing ideas; the merged result is validated
    against ``MentorIdeaAttributes``.
    """

    id: int | None = None
    link: str | None = Field(default=None, max_length=255)
    contributions: str | None = Field(default=None, max_length=255)
    ideas: str | None = Field(default=None, max_length=255)


class MentorRequest(CamelModel):
    """Request body for mentor registration and update."""

    mentor: MentorAttributes
    ideas: list[MentorIdeaPayload] = Field(default_factory=list)


class MentorIdeaResponse(CamelModel):
    id: int
    mentor_id: int
    link: str
    contributions: str
    ideas: str


class MentorResponse(CamelModel):
    """Mentor with its project ideas."""

    id: int
    user_id: int
    first_name: str
    last_name: str
    shirt_size: str
    github: str | None
    location: str
    summary: str
    occupation: str
    ideas: list[MentorIdeaResponse]


# === Attendee schemas ===


class AttendeeProjectAttributes(CamelModel):
    name: str = Field(max_length=100)
    description: str = Field(max_length=255)
    repo: str = Field(max_length=150)
    is_suggestion: bool


class AttendeeExtraInfoAttributes(CamelModel):
    info: str | None = Field(default=None, max_length=255)


class AttendeeCollaboratorAttributes(CamelModel):
    collaborator: str = Field(max_length=255)


class AttendeeEcosystemInterestAttributes(CamelModel):
    ecosystem_id: int


class AttendeeAttributes(CamelModel):
    """Attendee application fields."""

    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    shirt_size: ShirtSize
    diet: Diet
    age: int = Field(ge=13, le=115)
    graduation_year: int = Field(ge=2017, le=2030)
    transportation: Transportation
    school: str = Field(max_length=255)
    major: str = Field(max_length=255)
    gender: Gender
    professional_interest: ProfessionalInterest
    github: str = Field(max_length=50)
    linkedin: str = Field(max_length=50)
    interests: str = Field(max_length=255)
    is_novice: bool
    is_private: bool
    has_lightning_interest: bool = False
    phone_number: str | None = Field(default=None, max_length=15)


class AttendeeProjectPayload(CamelModel):
    id: int | None = None
    name: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=255)
    repo: str | None = Field(default=None, max_length=150)
    is_suggestion: bool | None = None


class AttendeeExtraInfoPayload(CamelModel):
    id: int | None = None
    info: str | None = Field(default=None, max_length=255)


class AttendeeCollaboratorPayload(CamelModel):
    id: int | None = None
    collaborator: str | None = Field(default=None, max_length=255)


class AttendeeEcosystemInterestPayload(CamelModel):
    id: int | None = None
    ecosystem_id: int | None = None


class AttendeeRequest(CamelModel):
    """Request body for attendee registration and update."""

    attendee: AttendeeAttributes
    projects: list[AttendeeProjectPayload] = Field(default_factory=list, max_length=1)
    extras: list[AttendeeExtraInfoPayload] = Field(default_factory=list, max_length=1)
    collaborators: list[AttendeeCollaboratorPayload] = Field(default_factory=list, max_length=8)
    ecosystem_interests: list[AttendeeEcosystemInterestPayload] = Field(
        default_factory=list, max_length=4
    )


class DecisionAttributes(CamelModel):
    """Reviewer decision on an attendee."""

    status: DecisionStatus
    wave: int = Field(default=0, ge=0, le=MAX_WAVE)
    priority: int = Field(default=0, ge=0, le=10)

    @model_validator(mode="after")
    def _accepted_needs_wave(self) -> DecisionAttributes:
        if self.status == DecisionStatus.ACCEPTED and self.wave < 1:
            raise ValueError("an accepted attendee must be assigned a wave")
        return self


class AttendeeProjectResponse(CamelModel):
    id: int
    attendee_id: int
    name: str
    description: str
    repo: str
    is_suggestion: bool


class AttendeeExtraInfoResponse(CamelModel):
    id: int
    attendee_id: int
    info: str | None


class AttendeeCollaboratorResponse(CamelModel):
    id: int
    attendee_id: int
    collaborator: str


class AttendeeEcosystemInterestResponse(CamelModel):
    id: int
    attendee_id: int
    ecosystem_id: int


class AttendeeResponse(CamelModel):
    """Attendee with decision state and sub-records."""

    id: int
    user_id: int
    first_name: str
    last_name: str
    shirt_size: str
    diet: str
    age: int
    graduation_year: int
    transportation: str
    school: str
    major: str
    gender: str
    professional_interest: str
    github: str
    linkedin: str
    interests: str
    is_novice: bool
    is_private: bool
    has_lightning_interest: bool
    phone_number: str | None
    status: str
    wave: int
    priority: int
    reviewer: str | None
    review_time: str | None
    projects: list[AttendeeProjectResponse]
    extras: list[AttendeeExtraInfoResponse]
    collaborators: list[AttendeeCollaboratorResponse]
    ecosystem_interests: list[AttendeeEcosystemInterestResponse]


# === Check-in schemas ===


class CheckInAttributes(CamelModel):
    """Check-in fields set by staff."""

    checked_in: bool
    travel: str = Field(max_length=255)
    location: str = Field(max_length=255)
    swag: bool


class CheckInResponse(CamelModel):
    id: int
    user_id: int
    checked_in: bool
    travel: str
    location: str
    swag: bool
    updated_at: str


# === Health schema ===


class HealthResponse(BaseModel):
    """Health check response."""

    status: str


# === Converters ===


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def mentor_to_response(mentor: Mentor) -> MentorResponse:
    """Convert Mentor (ideas loaded) to response model."""
    return MentorResponse.model_validate(
        {
            **column_attributes(mentor),
            "ideas": [column_attributes(idea) for idea in mentor.ideas],
        }
    )


def attendee_to_response(attendee: Attendee) -> AttendeeResponse:
    """Convert Attendee (sub-records loaded) to response model."""
    data = column_attributes(attendee)
    data["review_time"] = _isoformat(attendee.review_time)
    return AttendeeResponse.model_validate(
        {
            **data,
            "projects": [column_attributes(p) for p in attendee.projects],
            "extras": [column_attributes(e) for e in attendee.extras],
            "collaborators": [column_attributes(c) for c in attendee.collaborators],
            "ecosystem_interests": [
                column_attributes(i) for i in attendee.ecosystem_interests
            ],
        }
    )


def checkin_to_response(checkin: CheckIn) -> CheckInResponse:
    """Convert CheckIn to response model."""
    data = column_attributes(checkin)
    data["updated_at"] = checkin.updated_at.isoformat()
    return CheckInResponse.model_validate(data)
