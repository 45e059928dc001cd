"""Attendee registration, decision and listing API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from hackreg.core.types import ORGANIZERS
from hackreg.server.api.deps import get_attendee_service, get_current_user, require_roles
from hackreg.server.models import User
from hackreg.server.schemas import AttendeeRequest, AttendeeResponse, DecisionAttributes
from hackreg.server.services import AttendeeService
from hackreg.server.services.attendees import MAX_PAGE_SIZE

router = APIRouter(prefix="/v1/registration/attendee", tags=["attendees"])

organizer = require_roles(*ORGANIZERS)


@router.post("", response_model=AttendeeResponse, status_code=status.HTTP_201_CREATED)
def create_attendee(
    request: AttendeeRequest,
    user: User = Depends(get_current_user),
    service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeResponse:
    """Register the current user as an attendee."""
    return service.create(user, request.model_dump(exclude_unset=True))


@router.get("", response_model=AttendeeResponse)
def get_own_attendee(
    user: User = Depends(get_current_user),
    service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeResponse:
    """Get the current user's attendee registration."""
    return service.find_by_user(user.id)


@router.put("", response_model=AttendeeResponse)
def update_own_attendee(
    request: AttendeeRequest,
    user: User = Depends(get_current_user),
    service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeResponse:
    """Update the current user's attendee registration."""
    attendee = service.find_by_user(user.id)
    return service.update(attendee.id, request.model_dump(exclude_unset=True))


# Listing routes are declared before /{attendee_id}


@router.get("/all", response_model=list[AttendeeResponse], dependencies=[Depends(organizer)])
def list_attendees(
    page: int = Query(default=1, ge=1),
    count: int = Query(default=25, ge=1, le=MAX_PAGE_SIZE),
    category: str = Query(default="id"),
    ascending: bool = Query(default=True),
    service: AttendeeService = Depends(get_attendee_service),
) -> list[AttendeeResponse]:
    """List attendees, sorted by ``category``."""
    return service.list_attendees(page, count, category, ascending)


@router.get("/search", response_model=list[AttendeeResponse], dependencies=[Depends(organizer)])
def search_attendees(
    search: str = Query(..., min_length=1),
    page: int = Query(default=1, ge=1),
    count: int = Query(default=25, ge=1, le=MAX_PAGE_SIZE),
    category: str = Query(default="id"),
    ascending: bool = Query(default=True),
    service: AttendeeService = Depends(get_attendee_service),
) -> list[AttendeeResponse]:
    """Search attendees by first or last name."""
    return service.search_attendees(page, count, category, ascending, search)


@router.get("/filter", response_model=list[AttendeeResponse], dependencies=[Depends(organizer)])
def filter_attendees(
    filter_category: str = Query(..., alias="filterCategory"),
    filter_value: str = Query(..., alias="filterValue"),
    page: int = Query(default=1, ge=1),
    count: int = Query(default=25, ge=1, le=MAX_PAGE_SIZE),
    category: str = Query(default="id"),
    ascending: bool = Query(default=True),
    service: AttendeeService = Depends(get_attendee_service),
) -> list[AttendeeResponse]:
    """List attendees matching one attribute value."""
    return service.filter_attendees(page, count, category, ascending, filter_category, filter_value)


@router.put("/decision/{attendee_id}", response_model=AttendeeResponse)
def apply_decision(
    attendee_id: int,
    request: DecisionAttributes,
    reviewer: User = Depends(organizer),
    service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeResponse:
    """Record a review decision (organizers only)."""
    return service.apply_decision(attendee_id, request.model_dump(), reviewer=reviewer.email)


@router.get("/{attendee_id}", response_model=AttendeeResponse, dependencies=[Depends(organizer)])
def get_attendee(
    attendee_id: int,
    service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeResponse:
    """Get any attendee registration (organizers only)."""
    return service.find_by_id(attendee_id)


@router.put("/{attendee_id}", response_model=AttendeeResponse, dependencies=[Depends(organizer)])
def update_attendee(
    attendee_id: int,
    request: AttendeeRequest,
    service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeResponse:
    """Update any attendee registration (organizers only)."""
    return service.update(attendee_id, request.model_dump(exclude_unset=True))
