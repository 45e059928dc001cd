"""Tests for the server database."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from hackreg.core.types import Role
from hackreg.server.database import Database, hash_token
from hackreg.server.models import Mentor


class TestDatabaseCreation:
    """Tests for database initialization."""

    def test_creates_db_file(self, tmp_path) -> None:
        """Database should create SQLite file."""
        db_path = tmp_path / "test.db"
        db = Database(db_path)
        assert db_path.exists()
        db.close()

    def test_uses_wal_mode(self, db: Database) -> None:
        """Database should use WAL mode for concurrency."""
        with db._engine.connect() as conn:
            result = conn.exec_driver_sql("PRAGMA journal_mode").fetchone()
        assert result is not None
        assert result[0].lower() == "wal"

    def test_enforces_foreign_keys(self, db: Database) -> None:
        """Rows referencing missing parents should be rejected."""
        with pytest.raises(IntegrityError):
            with db.transaction() as session:
                session.add(
                    Mentor(
                        user_id=999,
                        first_name="A",
                        last_name="B",
                        shirt_size="M",
                        location="l",
                        summary="s",
                        occupation="o",
                    )
                )


class TestUserOperations:
    """Tests for user and role management."""

    def test_create_user(self, db: Database) -> None:
        user = db.create_user("ada@example.com")
        assert user.id is not None
        assert user.roles == []

    def test_duplicate_email(self, db: Database) -> None:
        db.create_user("ada@example.com")
        with pytest.raises(IntegrityError):
            db.create_user("ada@example.com")

    def test_get_user_by_email(self, db: Database) -> None:
        user = db.create_user("ada@example.com")
        found = db.get_user_by_email("ada@example.com")
        assert found is not None
        assert found.id == user.id
        assert db.get_user_by_email("nobody@example.com") is None

    def test_grant_role(self, db: Database) -> None:
        """Granted roles should be visible on the user."""
        user = db.create_user("ada@example.com")
        db.grant_role(user.id, Role.STAFF)

        fetched = db.get_user(user.id)
        assert fetched is not None
        assert fetched.has_role(Role.STAFF)
        assert not fetched.has_role(Role.ADMIN)

    def test_grant_role_reactivates(self, db: Database) -> None:
        """Granting an inactive role again should activate it."""
        user = db.create_user("ada@example.com")
        db.grant_role(user.id, Role.MENTOR, active=False)
        db.grant_role(user.id, Role.MENTOR)

        fetched = db.get_user(user.id)
        assert fetched is not None
        assert fetched.has_role(Role.MENTOR)
        assert len(fetched.roles) == 1

    def test_transaction_rolls_back(self, db: Database) -> None:
        """A raising block should leave no writes behind."""
        user = db.create_user("ada@example.com")
        with pytest.raises(RuntimeError):
            with db.transaction() as session:
                db.add_role(session, user.id, Role.ATTENDEE)
                raise RuntimeError("abort")

        fetched = db.get_user(user.id)
        assert fetched is not None
        assert fetched.roles == []


class TestTokenOperations:
    """Tests for API tokens."""

    def test_create_and_validate(self, db: Database) -> None:
        user = db.create_user("ada@example.com")
        raw_token, token = db.create_token(user.id)

        assert raw_token.startswith("hr_")
        assert token.token_hash == hash_token(raw_token)

        validated = db.validate_token(raw_token)
        assert validated is not None
        assert validated.email == "ada@example.com"

    def test_invalid_token(self, db: Database) -> None:
        assert db.validate_token("hr_nope") is None

    def test_expired_token(self, db: Database) -> None:
        user = db.create_user("ada@example.com")
        raw_token, _ = db.create_token(user.id, expires_in=timedelta(seconds=-1))
        assert db.validate_token(raw_token) is None

    def test_revoked_tokens(self, db: Database) -> None:
        user = db.create_user("ada@example.com")
        other = db.create_user("alan@example.com")
        first, _ = db.create_token(user.id)
        second, _ = db.create_token(user.id)
        kept, _ = db.create_token(other.id)

        assert db.revoke_tokens(user.id) == 2
        assert db.validate_token(first) is None
        assert db.validate_token(second) is None
        assert db.validate_token(kept) is not None
        assert db.revoke_tokens(user.id) == 0

    def test_hash_token_is_stable(self) -> None:
        assert hash_token("abc") == hash_token("abc")
        assert hash_token("abc") != hash_token("abd")
