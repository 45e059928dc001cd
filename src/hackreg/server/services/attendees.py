"""Attendee registration, review decisions and listing.

Decision changes (from a reviewer or from a general update that toggles
lightning-talk interest) are turned into mailing-list commands once the
transaction has committed. Mail failures never affect the record.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic.alias_generators import to_snake
from sqlalchemy import Boolean, Integer, or_, select
from sqlalchemy.sql.elements import ColumnElement

from hackreg.core.types import Role
from hackreg.server.errors import InvalidParameterError
from hackreg.server.mailing.decisions import DecisionSnapshot, plan_mail_commands
from hackreg.server.models import (
    Attendee,
    AttendeeExtraInfo,
    AttendeeProject,
    AttendeeEcosystemInterest,
    AttendeeRequestedCollaborator,
)
from hackreg.server.relations import ChildRelation
from hackreg.server.schemas import (
    AttendeeAttributes,
    AttendeeCollaboratorAttributes,
    AttendeeEcosystemInterestAttributes,
    AttendeeExtraInfoAttributes,
    AttendeeProjectAttributes,
    AttendeeResponse,
    DecisionAttributes,
    attendee_to_response,
    column_attributes,
    validate_attributes,
)
from hackreg.server.services.base import RegistrationService

if TYPE_CHECKING:
    from hackreg.server.database import Database
    from hackreg.server.mailing.dispatch import MailDispatcher

logger = logging.getLogger(__name__)

ATTENDEE_RELATIONS: tuple[ChildRelation, ...] = (
    ChildRelation(
        name="projects",
        model=AttendeeProject,
        foreign_key="attendee_id",
        schema=AttendeeProjectAttributes,
        max_items=1,
    ),
    ChildRelation(
        name="extras",
        model=AttendeeExtraInfo,
        foreign_key="attendee_id",
        schema=AttendeeExtraInfoAttributes,
        max_items=1,
    ),
    ChildRelation(
        name="collaborators",
        model=AttendeeRequestedCollaborator,
        foreign_key="attendee_id",
        schema=AttendeeCollaboratorAttributes,
        max_items=8,
    ),
    ChildRelation(
        name="ecosystem_interests",
        model=AttendeeEcosystemInterest,
        foreign_key="attendee_id",
        schema=AttendeeEcosystemInterestAttributes,
        max_items=4,
    ),
)

SORT_CATEGORIES = frozenset(
    {
        "id",
        "first_name",
        "last_name",
        "school",
        "major",
        "graduation_year",
        "age",
        "status",
        "wave",
        "priority",
    }
)

FILTER_CATEGORIES = frozenset(
    {
        "status",
        "wave",
        "priority",
        "school",
        "major",
        "diet",
        "shirt_size",
        "gender",
        "transportation",
        "professional_interest",
        "graduation_year",
        "is_novice",
        "has_lightning_interest",
    }
)

MAX_PAGE_SIZE = 100


class AttendeeService(RegistrationService[Attendee, AttendeeResponse]):
    """Registers attendees and records review decisions."""

    model = Attendee
    role = Role.ATTENDEE
    parent_key = "attendee"
    schema = AttendeeAttributes
    relations = ATTENDEE_RELATIONS
    label = "attendee"

    def __init__(self, db: Database, mailer: MailDispatcher | None = None) -> None:
        super().__init__(db)
        self._mailer = mailer

    def to_response(self, parent: Attendee) -> AttendeeResponse:
        return attendee_to_response(parent)

    # === Decisions ===

    def apply_decision(
        self,
        attendee_id: int,
        decision: Mapping[str, Any],
        reviewer: str | None = None,
    ) -> AttendeeResponse:
        """Record a reviewer decision.

        Args:
            attendee_id: Attendee to decide on.
            decision: ``status``, ``wave`` and ``priority``.
            reviewer: Email of the reviewer.

        Raises:
            ValidationError: If the decision is invalid.
            NotFoundError: If the attendee does not exist.
        """
        attrs = validate_attributes(DecisionAttributes, decision)

        with self._db.transaction() as session:
            attendee = self._load(session, attendee_id)
            before = column_attributes(attendee)

            attendee.status = attrs["status"]
            attendee.wave = attrs["wave"]
            attendee.priority = attrs["priority"]
            attendee.reviewer = reviewer
            attendee.review_time = datetime.now(UTC)
            session.flush()

            after = column_attributes(attendee)
            email = self._email(session, attendee)
            response = self.to_response(attendee)

        logger.info(
            "Decision for attendee %d: %s -> %s (wave %s) by %s",
            attendee_id,
            before["status"],
            attrs["status"],
            attrs["wave"],
            reviewer,
        )
        self._on_updated(email, before, after)
        return response

    def _on_updated(self, email: str, before: Mapping[str, Any], after: Mapping[str, Any]) -> None:
        commands = plan_mail_commands(
            DecisionSnapshot.from_attributes(before),
            DecisionSnapshot.from_attributes(after),
        )
        if not commands:
            return
        if self._mailer is None:
            logger.debug("Mail disabled, dropping %d command(s) for %s", len(commands), email)
            return
        self._mailer.submit(email, commands)

    # === Listing ===

    def list_attendees(
        self,
        page: int,
        count: int,
        category: str = "id",
        ascending: bool = True,
    ) -> list[AttendeeResponse]:
        """List attendees one page at a time.

        Args:
            page: 1-based page number.
            count: Page size.
            category: Attribute to sort by.
            ascending: Sort direction.

        Raises:
            InvalidParameterError: If paging or category is invalid.
        """
        return self._query(page, count, category, ascending)

    def search_attendees(
        self,
        page: int,
        count: int,
        category: str,
        ascending: bool,
        search: str,
    ) -> list[AttendeeResponse]:
        """List attendees whose first or last name contains ``search``.

        ``%`` and ``_`` in ``search`` match literally.
        """
        escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        condition = or_(
            Attendee.first_name.ilike(pattern, escape="\\"),
            Attendee.last_name.ilike(pattern, escape="\\"),
        )
        return self._query(page, count, category, ascending, condition)

    def filter_attendees(
        self,
        page: int,
        count: int,
        category: str,
        ascending: bool,
        filter_category: str,
        filter_value: str,
    ) -> list[AttendeeResponse]:
        """List attendees whose ``filter_category`` equals ``filter_value``.

        Raises:
            InvalidParameterError: If the filter category is unknown or the
                value does not fit its type.
        """
        name = to_snake(filter_category)
        if name not in FILTER_CATEGORIES:
            raise InvalidParameterError(
                f"Attendees cannot be filtered by '{filter_category}'", "filterCategory"
            )
        column = getattr(Attendee, name)
        value = _coerce(column, filter_value)
        return self._query(page, count, category, ascending, column == value)

    def _query(
        self,
        page: int,
        count: int,
        category: str,
        ascending: bool,
        condition: ColumnElement[bool] | None = None,
    ) -> list[AttendeeResponse]:
        if page < 1:
            raise InvalidParameterError("Page must be a positive number", "page")
        if not 1 <= count <= MAX_PAGE_SIZE:
            raise InvalidParameterError(f"Count must be between 1 and {MAX_PAGE_SIZE}", "count")
        name = to_snake(category)
        if name not in SORT_CATEGORIES:
            raise InvalidParameterError(f"Attendees cannot be sorted by '{category}'", "category")

        column = getattr(Attendee, name)
        stmt = select(Attendee)
        if condition is not None:
            stmt = stmt.where(condition)
        order = column.asc() if ascending else column.desc()
        stmt = stmt.order_by(order, Attendee.id).offset((page - 1) * count).limit(count)

        with self._db.transaction() as session:
            attendees = session.execute(stmt).scalars().all()
            return [self.to_response(a) for a in attendees]


def _coerce(column: Any, raw: str) -> Any:
    column_type = column.type
    try:
        if isinstance(column_type, Boolean):
            lowered = raw.lower()
            if lowered not in {"true", "false", "1", "0"}:
                raise ValueError(raw)
            return lowered in {"true", "1"}
        if isinstance(column_type, Integer):
            return int(raw)
    except ValueError as e:
        raise InvalidParameterError(f"'{raw}' is not a valid filter value", "filterValue") from e
    return raw
