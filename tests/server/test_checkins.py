"""Tests for check-in records."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from hackreg.server.database import Database
from hackreg.server.errors import InvalidParameterError, NotFoundError, ValidationError
from hackreg.server.models import User
from hackreg.server.services import CheckInService


@pytest.fixture
def service(db: Database) -> CheckInService:
    return CheckInService(db)


@pytest.fixture
def user(make_user: Callable[..., User]) -> User:
    return make_user("grace@example.com")


@pytest.fixture
def attrs() -> dict[str, Any]:
    return {"checked_in": True, "travel": "Bus", "location": "Siebel", "swag": False}


class TestCheckIn:
    """Tests for CheckInService."""

    def test_create(self, service: CheckInService, user: User, attrs: dict[str, Any]) -> None:
        """Should create the check-in of a user."""
        response = service.create(user.id, attrs)
        assert response.user_id == user.id
        assert response.checked_in is True
        assert response.location == "Siebel"

    def test_create_unknown_user(self, service: CheckInService, attrs: dict[str, Any]) -> None:
        """Unknown users should raise NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            service.create(42, attrs)
        assert exc_info.value.source == "userId"

    def test_create_twice(self, service: CheckInService, user: User, attrs: dict[str, Any]) -> None:
        """A second check-in should raise InvalidParameterError."""
        service.create(user.id, attrs)
        with pytest.raises(InvalidParameterError) as exc_info:
            service.create(user.id, attrs)
        assert exc_info.value.source == "userId"

    def test_create_invalid(self, service: CheckInService, user: User) -> None:
        """Missing fields should raise ValidationError."""
        with pytest.raises(ValidationError):
            service.create(user.id, {"checkedIn": True})

    def test_update(self, service: CheckInService, user: User, attrs: dict[str, Any]) -> None:
        """Should replace the check-in fields."""
        service.create(user.id, attrs)
        response = service.update(user.id, {**attrs, "swag": True})
        assert response.swag is True
        assert service.find_by_user_id(user.id).swag is True

    def test_update_missing(self, service: CheckInService, user: User, attrs: dict[str, Any]) -> None:
        """Updating without a check-in should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            service.update(user.id, attrs)

    def test_find_missing(self, service: CheckInService, user: User) -> None:
        """Looking up a missing check-in should raise NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            service.find_by_user_id(user.id)
        assert exc_info.value.source == "userId"
