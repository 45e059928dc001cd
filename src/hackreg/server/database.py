"""Server database using SQLAlchemy with SQLite.

This module provides:
- Engine setup and the transaction scope used by every service
- User and token management
- Role assignment
"""

from __future__ import annotations

import hashlib
import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event, select
from sqlalchemy.orm import Session

from hackreg.core.types import Role
from hackreg.server.models import Base, Token, User, UserRole

if TYPE_CHECKING:
    from sqlalchemy import Engine


def hash_token(token: str) -> str:
    """Hash a token using SHA-256.

    Args:
        token: Raw token string.

    Returns:
        Hex-encoded SHA-256 hash.
    """
    return hashlib.sha256(token.encode()).hexdigest()


def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """SQLAlchemy database for registration records.

    Uses SQLite with WAL mode and foreign keys enforced on every connection.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the database.

        Args:
            db_path: Path to the SQLite database file.
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # check_same_thread=False: requests are served from a thread pool
        self._engine: Engine = create_engine(
            f"sqlite:///{self._db_path}",
            connect_args={"check_same_thread": False},
            echo=False,
        )
        event.listen(self._engine, "connect", _enable_foreign_keys)

        with self._engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")

        Base.metadata.create_all(self._engine)

    @property
    def path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Close the database connection."""
        self._engine.dispose()

    def _session(self) -> Session:
        """Create a new database session."""
        return Session(self._engine)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Open a session inside a single transaction.

        Commits when the block exits normally and rolls back every write
        when it raises. Loaded objects stay readable after commit.
        """
        with Session(self._engine, expire_on_commit=False) as session, session.begin():
            yield session

    # === User operations ===

    def create_user(self, email: str) -> User:
        """Create a user.

        Args:
            email: Unique email address.

        Returns:
            Created User object.

        Raises:
            IntegrityError: If email already exists.
        """
        with self._session() as session:
            user = User(email=email)
            session.add(user)
            session.commit()
            session.refresh(user)
            # Load roles before detaching
            _ = user.roles
            session.expunge(user)
            return user

    def get_user(self, user_id: int) -> User | None:
        """Get a user by ID, with roles loaded."""
        with self._session() as session:
            user = session.get(User, user_id)
            if user:
                session.expunge(user)
            return user

    def get_user_by_email(self, email: str) -> User | None:
        """Get a user by email, with roles loaded."""
        with self._session() as session:
            stmt = select(User).where(User.email == email)
            user = session.execute(stmt).scalar_one_or_none()
            if user:
                session.expunge(user)
            return user

    # === Role operations ===

    def add_role(
        self,
        session: Session,
        user_id: int,
        role: Role,
        active: bool = True,
    ) -> UserRole:
        """Grant a role inside the caller's transaction.

        If the user already holds the role (active or not), the existing row
        is reactivated instead.

        Args:
            session: Session of the enclosing transaction.
            user_id: User to grant the role to.
            role: Role to grant.
            active: Whether the role is active.

        Returns:
            The UserRole row.
        """
        stmt = select(UserRole).where(UserRole.user_id == user_id, UserRole.role == role.value)
        user_role = session.execute(stmt).scalar_one_or_none()
        if user_role is None:
            user_role = UserRole(user_id=user_id, role=role.value, active=active)
            session.add(user_role)
        else:
            user_role.active = active
        session.flush()
        return user_role

    def grant_role(self, user_id: int, role: Role, active: bool = True) -> UserRole:
        """Grant a role in its own transaction."""
        with self.transaction() as session:
            user_role = self.add_role(session, user_id, role, active)
            session.expunge(user_role)
            return user_role

    # === Token operations ===

    def create_token(
        self,
        user_id: int,
        expires_in: timedelta | None = None,
    ) -> tuple[str, Token]:
        """Create a new API token.

        Args:
            user_id: User ID to associate with token.
            expires_in: Optional expiration duration.

        Returns:
            Tuple of (raw_token, Token object).
        """
        raw_token = "hr_" + secrets.token_urlsafe(32)
        now = datetime.now(UTC)
        expires_at = (now + expires_in) if expires_in else None

        with self._session() as session:
            token = Token(
                user_id=user_id,
                token_hash=hash_token(raw_token),
                created_at=now,
                expires_at=expires_at,
            )
            session.add(token)
            session.commit()
            session.refresh(token)
            session.expunge(token)
            return raw_token, token

    def validate_token(self, raw_token: str) -> User | None:
        """Resolve a raw token to its user.

        Args:
            raw_token: Raw token string.

        Returns:
            The token's User (roles loaded) if the token is valid, None otherwise.
        """
        token_hash = hash_token(raw_token)
        with self._session() as session:
            stmt = select(Token).where(Token.token_hash == token_hash, Token.revoked == False)  # noqa: E712
            token = session.execute(stmt).scalar_one_or_none()

            if token is None:
                return None

            if token.expires_at:
                expires_at = token.expires_at
                # SQLite returns naive datetimes; stored values are UTC
                if expires_at.tzinfo is None:
                    expires_at = expires_at.replace(tzinfo=UTC)
                if expires_at < datetime.now(UTC):
                    return None

            user = token.user
            _ = user.roles
            session.expunge(user)
            return user

    def revoke_tokens(self, user_id: int) -> int:
        """Revoke every active token of a user.

        Args:
            user_id: Owner of the tokens.

        Returns:
            Number of tokens revoked.
        """
        with self._session() as session:
            stmt = select(Token).where(Token.user_id == user_id, Token.revoked == False)  # noqa: E712
            tokens = session.execute(stmt).scalars().all()
            for token in tokens:
                token.revoked = True
            session.commit()
            return len(tokens)
