"""Shared fixtures for hackreg tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from hackreg.core.types import Role
from hackreg.server.database import Database
from hackreg.server.models import User


@pytest.fixture
def db(tmp_path: Path) -> Generator[Database, None, None]:
    """Create a test database."""
    database = Database(tmp_path / "test.db")
    yield database
    database.close()


@pytest.fixture
def make_user(db: Database) -> Callable[..., User]:
    """Create users, optionally with active roles.

    Usage:
        staff = make_user("staff@example.com", Role.STAFF)
    """

    def _make(email: str, *roles: Role) -> User:
        user = db.create_user(email)
        for role in roles:
            db.grant_role(user.id, role)
        fetched = db.get_user(user.id)
        assert fetched is not None
        return fetched

    return _make


@pytest.fixture
def mentor_attrs() -> dict[str, Any]:
    """Valid mentor attributes."""
    return {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "shirt_size": "M",
        "github": "ada",
        "location": "London",
        "summary": "Analytical engines",
        "occupation": "Engineer",
    }


@pytest.fixture
def attendee_attrs() -> dict[str, Any]:
    """Valid attendee attributes."""
    return {
        "first_name": "Grace",
        "last_name": "Hopper",
        "shirt_size": "L",
        "diet": "NONE",
        "age": 20,
        "graduation_year": 2026,
        "transportation": "NOT_NEEDED",
        "school": "Yale",
        "major": "Mathematics",
        "gender": "FEMALE",
        "professional_interest": "INTERNSHIP",
        "github": "grace",
        "linkedin": "grace-hopper",
        "interests": "Compilers",
        "is_novice": False,
        "is_private": False,
        "has_lightning_interest": False,
    }
