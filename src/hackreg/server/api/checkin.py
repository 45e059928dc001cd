"""Check-in API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from hackreg.core.types import ORGANIZERS
from hackreg.server.api.deps import get_checkin_service, get_current_user, require_roles
from hackreg.server.models import User
from hackreg.server.schemas import CheckInAttributes, CheckInResponse
from hackreg.server.services import CheckInService

router = APIRouter(prefix="/v1/checkin", tags=["checkin"])

organizer = require_roles(*ORGANIZERS)


@router.get("", response_model=CheckInResponse)
def get_own_checkin(
    user: User = Depends(get_current_user),
    service: CheckInService = Depends(get_checkin_service),
) -> CheckInResponse:
    """Get the current user's check-in."""
    return service.find_by_user_id(user.id)


@router.post(
    "/user/{user_id}",
    response_model=CheckInResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(organizer)],
)
def create_checkin(
    user_id: int,
    request: CheckInAttributes,
    service: CheckInService = Depends(get_checkin_service),
) -> CheckInResponse:
    """Check a user in."""
    return service.create(user_id, request.model_dump())


@router.put("/user/{user_id}", response_model=CheckInResponse, dependencies=[Depends(organizer)])
def update_checkin(
    user_id: int,
    request: CheckInAttributes,
    service: CheckInService = Depends(get_checkin_service),
) -> CheckInResponse:
    """Update a user's check-in."""
    return service.update(user_id, request.model_dump())


@router.get("/user/{user_id}", response_model=CheckInResponse, dependencies=[Depends(organizer)])
def get_checkin(
    user_id: int,
    service: CheckInService = Depends(get_checkin_service),
) -> CheckInResponse:
    """Get a user's check-in."""
    return service.find_by_user_id(user_id)
