"""Create, update and lookup flows shared by parent registrations.

A parent registration (mentor, attendee) is one row owned by a user plus a
fixed set of child collections declared in ``relations``. Subclasses
declare the model, role, schema and relations; this module runs the flows:

create: validate -> [check role, add role, save parent, insert children]
update: [load, merge + validate, diff, save parent, apply diff]

Brackets mark a single transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hackreg.core.types import Role
from hackreg.server.errors import InvalidParameterError, NotFoundError, RegistrationError
from hackreg.server.models import User, UserRole
from hackreg.server.relations import (
    ChildRelation,
    ParentSnapshot,
    apply_diff,
    compute_diff,
    load_foreign_children,
    validate_children,
)
from hackreg.server.schemas import column_attributes, validate_attributes

if TYPE_CHECKING:
    from hackreg.server.database import Database

logger = logging.getLogger(__name__)

ParentT = TypeVar("ParentT")
ResponseT = TypeVar("ResponseT", bound=BaseModel)


class RegistrationService(Generic[ParentT, ResponseT]):
    """Registration flows for one parent type.

    Attributes:
        model: ORM class of the parent.
        role: Role granted on registration.
        parent_key: Key of the parent's own attributes in a request.
        schema: Schema of the parent's own attributes.
        relations: Child collections of the parent.
        label: Human-readable name used in messages.
    """

    model: ClassVar[type[Any]]
    role: ClassVar[Role]
    parent_key: ClassVar[str]
    schema: ClassVar[type[BaseModel]]
    relations: ClassVar[tuple[ChildRelation, ...]]
    label: ClassVar[str]

    def __init__(self, db: Database) -> None:
        self._db = db

    def to_response(self, parent: ParentT) -> ResponseT:
        raise NotImplementedError

    # === Lookups ===

    def find_by_user(self, user_id: int) -> ResponseT:
        """Find the registration of a user.

        Raises:
            NotFoundError: If the user has no registration.
        """
        with self._db.transaction() as session:
            parent = self._get_by_user(session, user_id)
            if parent is None:
                raise NotFoundError(f"A {self.label} with the given user ID cannot be found", "userId")
            return self.to_response(parent)

    def find_by_id(self, parent_id: int) -> ResponseT:
        """Find a registration by its ID.

        Raises:
            NotFoundError: If no registration has this ID.
        """
        with self._db.transaction() as session:
            return self.to_response(self._load(session, parent_id))

    def _get_by_user(self, session: Session, user_id: int) -> ParentT | None:
        stmt = select(self.model).where(self.model.user_id == user_id)
        return session.execute(stmt).scalar_one_or_none()

    def _load(self, session: Session, parent_id: int) -> ParentT:
        parent = session.get(self.model, parent_id)
        if parent is None:
            raise NotFoundError(f"A {self.label} with the given ID cannot be found", "id")
        return parent

    # === Create ===

    def create(self, user: User, attributes: Mapping[str, Any]) -> ResponseT:
        """Register ``user`` with the given attributes.

        Args:
            user: User to register; roles must be loaded.
            attributes: ``{parent_key: {...}, <relation>: [...], ...}``.

        Returns:
            The saved registration with its children.

        Raises:
            ValidationError: If the attributes are invalid.
            InvalidParameterError: If the user already holds the role.
        """
        parent_attrs = validate_attributes(
            self.schema, attributes.get(self.parent_key) or {}, prefix=self.parent_key
        )
        payload = self._payload(attributes)

        with self._db.transaction() as session:
            if self._holds_role(session, user.id):
                raise self._already_registered()
            self._db.add_role(session, user.id, self.role, active=False)
            parent = self.model(**parent_attrs, user_id=user.id)
            session.add(parent)
            try:
                session.flush()
            except IntegrityError as e:
                # Unique user_id on the parent table: a concurrent registration won.
                raise self._already_registered() from e

            empty = ParentSnapshot(id=parent.id, children={r.name: () for r in self.relations})
            self._sync_children(session, parent, empty, payload)
            parent_id = parent.id
            response = self.to_response(parent)

        logger.info("User %d registered as %s %d", user.id, self.label, parent_id)
        return response

    # === Update ===

    def update(self, parent_id: int, attributes: Mapping[str, Any]) -> ResponseT:
        """Update a registration and fully replace its child collections.

        Collections absent from ``attributes`` are treated as empty, so all of
        their existing children are deleted.

        Raises:
            NotFoundError: If the registration, or a referenced child, does
                not exist.
            UnauthorizedError: If a referenced child belongs to another parent.
            ValidationError: If the merged attributes are invalid.
        """
        with self._db.transaction() as session:
            parent = self._load(session, parent_id)
            before = column_attributes(parent)

            merged = {**before, **(attributes.get(self.parent_key) or {})}
            parent_attrs = validate_attributes(self.schema, merged, prefix=self.parent_key)

            payload = self._payload(attributes)
            foreign = load_foreign_children(session, parent, self.relations, payload)
            snapshot = ParentSnapshot.of(parent, self.relations, foreign)
            for key, value in parent_attrs.items():
                setattr(parent, key, value)
            self._sync_children(session, parent, snapshot, payload)

            after = column_attributes(parent)
            email = self._email(session, parent)
            response = self.to_response(parent)

        logger.info("Updated %s %d", self.label, parent_id)
        self._on_updated(email, before, after)
        return response

    def _on_updated(self, email: str, before: Mapping[str, Any], after: Mapping[str, Any]) -> None:
        """Hook run after an update has committed."""

    # === Helpers ===

    def _payload(self, attributes: Mapping[str, Any]) -> dict[str, Sequence[Mapping[str, Any]]]:
        return {r.name: list(attributes.get(r.name) or []) for r in self.relations}

    def _sync_children(
        self,
        session: Session,
        parent: ParentT,
        snapshot: ParentSnapshot,
        payload: Mapping[str, Sequence[Mapping[str, Any]]],
    ) -> None:
        outcome = compute_diff(snapshot, self.relations, payload)
        if isinstance(outcome, RegistrationError):
            raise outcome
        diff = validate_children(outcome, self.relations)
        apply_diff(session, parent, self.relations, diff)

    def _email(self, session: Session, parent: Any) -> str:
        user = session.get(User, parent.user_id)
        return user.email if user else ""

    def _holds_role(self, session: Session, user_id: int) -> bool:
        """Whether the user holds this service's role, active or not."""
        stmt = select(UserRole.id).where(
            UserRole.user_id == user_id, UserRole.role == self.role.value
        )
        return session.execute(stmt).first() is not None

    def _already_registered(self) -> InvalidParameterError:
        return InvalidParameterError(
            f"The given user has already registered as a {self.label}", "userId"
        )
