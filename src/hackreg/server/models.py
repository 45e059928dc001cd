"""SQLAlchemy models for the hackreg server.

This module defines the database schema using SQLAlchemy ORM.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from hackreg.core.types import DecisionStatus, Role


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class User(Base):
    """A registered account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    roles: Mapped[list[UserRole]] = relationship(
        "UserRole", back_populates="user", cascade="all, delete-orphan", lazy="selectin"
    )
    tokens: Mapped[list[Token]] = relationship(
        "Token", back_populates="user", cascade="all, delete-orphan"
    )

    def has_role(self, role: Role, active_only: bool = True) -> bool:
        """Check whether the user holds a role.

        Args:
            role: Role to look for.
            active_only: If False, inactive role rows count as well.
        """
        return any(
            r.role == role.value and (r.active or not active_only) for r in self.roles
        )


class UserRole(Base):
    """A role granted to a user."""

    __tablename__ = "user_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    user: Mapped[User] = relationship("User", back_populates="roles")

    __table_args__ = (Index("idx_user_roles_user", "user_id", "role", unique=True),)


class Token(Base):
    """Represents an API token."""

    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    user: Mapped[User] = relationship("User", back_populates="tokens")

    __table_args__ = (Index("idx_tokens_hash", "token_hash"),)


# === Mentor ===


class Mentor(Base):
    """A mentor registration, one per user."""

    __tablename__ = "mentors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    shirt_size: Mapped[str] = mapped_column(String(2), nullable=False)
    github: Mapped[str | None] = mapped_column(String(50), nullable=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    summary: Mapped[str] = mapped_column(String(255), nullable=False)
    occupation: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    ideas: Mapped[list[MentorProjectIdea]] = relationship(
        "MentorProjectIdea",
        back_populates="mentor",
        order_by="MentorProjectIdea.id",
        lazy="selectin",
    )


class MentorProjectIdea(Base):
    """A project idea a mentor offers to help with."""

    __tablename__ = "mentor_project_ideas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mentor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mentors.id", ondelete="CASCADE"), nullable=False
    )
    link: Mapped[str] = mapped_column(String(255), nullable=False)
    contributions: Mapped[str] = mapped_column(String(255), nullable=False)
    ideas: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    mentor: Mapped[Mentor] = relationship("Mentor", back_populates="ideas")

    __table_args__ = (Index("idx_mentor_ideas_mentor", "mentor_id"),)


# === Attendee ===


class Attendee(Base):
    """An attendee application, one per user."""

    __tablename__ = "attendees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    shirt_size: Mapped[str] = mapped_column(String(2), nullable=False)
    diet: Mapped[str] = mapped_column(String(20), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    graduation_year: Mapped[int] = mapped_column(Integer, nullable=False)
    transportation: Mapped[str] = mapped_column(String(20), nullable=False)
    school: Mapped[str] = mapped_column(String(255), nullable=False)
    major: Mapped[str] = mapped_column(String(255), nullable=False)
    gender: Mapped[str] = mapped_column(String(20), nullable=False)
    professional_interest: Mapped[str] = mapped_column(String(20), nullable=False)
    github: Mapped[str] = mapped_column(String(50), nullable=False)
    linkedin: Mapped[str] = mapped_column(String(50), nullable=False)
    interests: Mapped[str] = mapped_column(String(255), nullable=False)
    is_novice: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False)
    has_lightning_interest: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(15), nullable=True)

    # Decision
    status: Mapped[str] = mapped_column(
        String(20), default=DecisionStatus.PENDING.value, nullable=False
    )
    wave: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reviewer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    review_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    user: Mapped[User] = relationship("User")
    projects: Mapped[list[AttendeeProject]] = relationship(
        "AttendeeProject", order_by="AttendeeProject.id", lazy="selectin"
    )
    extras: Mapped[list[AttendeeExtraInfo]] = relationship(
        "AttendeeExtraInfo", order_by="AttendeeExtraInfo.id", lazy="selectin"
    )
    collaborators: Mapped[list[AttendeeRequestedCollaborator]] = relationship(
        "AttendeeRequestedCollaborator",
        order_by="AttendeeRequestedCollaborator.id",
        lazy="selectin",
    )
    ecosystem_interests: Mapped[list[AttendeeEcosystemInterest]] = relationship(
        "AttendeeEcosystemInterest",
        order_by="AttendeeEcosystemInterest.id",
        lazy="selectin",
    )

    __table_args__ = (Index("idx_attendees_status", "status"),)


class AttendeeProject(Base):
    """A project an attendee plans to work on."""

    __tablename__ = "attendee_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    attendee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("attendees.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    repo: Mapped[str] = mapped_column(String(150), nullable=False)
    is_suggestion: Mapped[bool] = mapped_column(Boolean, nullable=False)


class AttendeeExtraInfo(Base):
    """Free-form extra information supplied by an attendee."""

    __tablename__ = "attendee_extra_infos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    attendee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("attendees.id", ondelete="CASCADE"), nullable=False
    )
    info: Mapped[str | None] = mapped_column(String(255), nullable=True)


class AttendeeRequestedCollaborator(Base):
    """Someone an attendee wants to be grouped with."""

    __tablename__ = "attendee_requested_collaborators"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    attendee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("attendees.id", ondelete="CASCADE"), nullable=False
    )
    collaborator: Mapped[str] = mapped_column(String(255), nullable=False)


class AttendeeEcosystemInterest(Base):
    """An ecosystem an attendee wants to hack on."""

    __tablename__ = "attendee_ecosystem_interests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    attendee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("attendees.id", ondelete="CASCADE"), nullable=False
    )
    ecosystem_id: Mapped[int] = mapped_column(Integer, nullable=False)


# === Check-in ===


class CheckIn(Base):
    """Event check-in record of a user."""

    __tablename__ = "checkins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False
    )
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    travel: Mapped[str] = mapped_column(String(255), nullable=False)
    swag: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    checked_in: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
