"""FastAPI dependencies for API routes."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hackreg.core.types import Role
from hackreg.server.database import Database
from hackreg.server.models import User
from hackreg.server.services import AttendeeService, CheckInService, MentorService

# Security scheme
security = HTTPBearer(auto_error=False)


def get_db(request: Request) -> Database:
    """Get database from app state."""
    db: Database = request.app.state.db
    return db


def get_mentor_service(request: Request) -> MentorService:
    service: MentorService = request.app.state.mentors
    return service


def get_attendee_service(request: Request) -> AttendeeService:
    service: AttendeeService = request.app.state.attendees
    return service


def get_checkin_service(request: Request) -> CheckInService:
    service: CheckInService = request.app.state.checkins
    return service


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    """Validate bearer token and return its User."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = get_db(request).validate_token(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_roles(*roles: Role) -> Callable[[User], User]:
    """Dependency factory allowing only users holding an active role in ``roles``.

    Usage:
        @router.get("/x", dependencies=[Depends(require_roles(Role.ADMIN))])
    """

    def _role_dependency(user: User = Depends(get_current_user)) -> User:
        if not any(user.has_role(role) for role in roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _role_dependency
