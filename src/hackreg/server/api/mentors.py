"""Mentor registration API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from hackreg.core.types import ORGANIZERS
from hackreg.server.api.deps import get_current_user, get_mentor_service, require_roles
from hackreg.server.models import User
from hackreg.server.schemas import MentorRequest, MentorResponse
from hackreg.server.services import MentorService

router = APIRouter(prefix="/v1/registration/mentor", tags=["mentors"])


@router.post("", response_model=MentorResponse, status_code=status.HTTP_201_CREATED)
def create_mentor(
    request: MentorRequest,
    user: User = Depends(get_current_user),
    service: MentorService = Depends(get_mentor_service),
) -> MentorResponse:
    """Register the current user as a mentor."""
    return service.create(user, request.model_dump(exclude_unset=True))


@router.get("", response_model=MentorResponse)
def get_own_mentor(
    user: User = Depends(get_current_user),
    service: MentorService = Depends(get_mentor_service),
) -> MentorResponse:
    """Get the current user's mentor registration."""
    return service.find_by_user(user.id)


@router.put("", response_model=MentorResponse)
def update_own_mentor(
    request: MentorRequest,
    user: User = Depends(get_current_user),
    service: MentorService = Depends(get_mentor_service),
) -> MentorResponse:
    """Update the current user's mentor registration."""
    mentor = service.find_by_user(user.id)
    return service.update(mentor.id, request.model_dump(exclude_unset=True))


@router.get(
    "/{mentor_id}",
    response_model=MentorResponse,
    dependencies=[Depends(require_roles(*ORGANIZERS))],
)
def get_mentor(
    mentor_id: int,
    service: MentorService = Depends(get_mentor_service),
) -> MentorResponse:
    """Get any mentor registration (organizers only)."""
    return service.find_by_id(mentor_id)


@router.put(
    "/{mentor_id}",
    response_model=MentorResponse,
    dependencies=[Depends(require_roles(*ORGANIZERS))],
)
def update_mentor(
    mentor_id: int,
    request: MentorRequest,
    service: MentorService = Depends(get_mentor_service),
) -> MentorResponse:
    """Update any mentor registration (organizers only)."""
    return service.update(mentor_id, request.model_dump(exclude_unset=True))
