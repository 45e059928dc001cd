"""Mentor registration."""

from __future__ import annotations

from hackreg.core.types import Role
from hackreg.server.models import Mentor, MentorProjectIdea
from hackreg.server.relations import ChildRelation
from hackreg.server.schemas import (
    MentorAttributes,
    MentorIdeaAttributes,
    MentorResponse,
    mentor_to_response,
)
from hackreg.server.services.base import RegistrationService

MENTOR_RELATIONS: tuple[ChildRelation, ...] = (
    ChildRelation(
        name="ideas",
        model=MentorProjectIdea,
        foreign_key="mentor_id",
        schema=MentorIdeaAttributes,
    ),
)


class MentorService(RegistrationService[Mentor, MentorResponse]):
    """Registers mentors and their project ideas."""

    model = Mentor
    role = Role.MENTOR
    parent_key = "mentor"
    schema = MentorAttributes
    relations = MENTOR_RELATIONS
    label = "mentor"

    def to_response(self, parent: Mentor) -> MentorResponse:
        return mentor_to_response(parent)
