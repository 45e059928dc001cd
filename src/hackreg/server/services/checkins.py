"""Event check-in records, maintained by staff."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from hackreg.server.errors import InvalidParameterError, NotFoundError
from hackreg.server.models import CheckIn, User
from hackreg.server.schemas import (
    CheckInAttributes,
    CheckInResponse,
    checkin_to_response,
    validate_attributes,
)

if TYPE_CHECKING:
    from hackreg.server.database import Database

logger = logging.getLogger(__name__)


class CheckInService:
    """Service for check-in records (one per user)."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create(self, user_id: int, attributes: Mapping[str, Any]) -> CheckInResponse:
        """Create the check-in of a user.

        Raises:
            ValidationError: If the attributes are invalid.
            NotFoundError: If the user does not exist.
            InvalidParameterError: If the user is already checked in.
        """
        attrs = validate_attributes(CheckInAttributes, attributes)
        with self._db.transaction() as session:
            if session.get(User, user_id) is None:
                raise NotFoundError("A user with the given ID cannot be found", "userId")
            if self._get(session, user_id) is not None:
                raise InvalidParameterError("A check-in for the given user already exists", "userId")
            checkin = CheckIn(user_id=user_id, **attrs)
            session.add(checkin)
            session.flush()
            response = checkin_to_response(checkin)

        logger.info("Created check-in for user %d", user_id)
        return response

    def update(self, user_id: int, attributes: Mapping[str, Any]) -> CheckInResponse:
        """Replace the check-in fields of a user.

        Raises:
            ValidationError: If the attributes are invalid.
            NotFoundError: If the user has no check-in.
        """
        attrs = validate_attributes(CheckInAttributes, attributes)
        with self._db.transaction() as session:
            checkin = self._require(session, user_id)
            for key, value in attrs.items():
                setattr(checkin, key, value)
            session.flush()
            response = checkin_to_response(checkin)

        logger.info("Updated check-in for user %d", user_id)
        return response

    def find_by_user_id(self, user_id: int) -> CheckInResponse:
        """Get the check-in of a user.

        Raises:
            NotFoundError: If the user has no check-in.
        """
        with self._db.transaction() as session:
            return checkin_to_response(self._require(session, user_id))

    def _get(self, session: Session, user_id: int) -> CheckIn | None:
        stmt = select(CheckIn).where(CheckIn.user_id == user_id)
        return session.execute(stmt).scalar_one_or_none()

    def _require(self, session: Session, user_id: int) -> CheckIn:
        checkin = self._get(session, user_id)
        if checkin is None:
            raise NotFoundError("A check-in for the given user cannot be found", "userId")
        return checkin
