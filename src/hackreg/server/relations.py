"""Reconciliation of a parent's child collections.

Updating a parent (mentor, attendee) replaces each of its child collections
with the list submitted by the client:

- objects without ``id`` are inserted
- objects with an ``id`` update the matching loaded child
- loaded children missing from the list are deleted

``compute_diff`` partitions the payload without touching the database.
``apply_diff`` writes the partition inside the caller's transaction, so
either every change of an update is visible or none is.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select, update

from hackreg.server.errors import (
    NotFoundError,
    RegistrationError,
    UnauthorizedError,
    ValidationError,
)
from hackreg.server.schemas import column_attributes, validate_attributes

if TYPE_CHECKING:
    from pydantic import BaseModel
    from sqlalchemy.orm import Session

    from hackreg.server.models import Base

logger = logging.getLogger(__name__)

Attributes = Mapping[str, Any]


@dataclass(frozen=True)
class ChildRelation:
    """A named child collection of a parent type.

    Attributes:
        name: Relationship attribute on the parent, e.g. ``"ideas"``.
        model: ORM class of the children.
        foreign_key: Column on the child holding the parent id.
        schema: Schema a complete child must satisfy.
        max_items: Upper bound on the collection size, if any.
    """

    name: str
    model: type[Base]
    foreign_key: str
    schema: type[BaseModel]
    max_items: int | None = None


@dataclass(frozen=True)
class ParentSnapshot:
    """Read-only view of a parent and its loaded children.

    Attributes:
        id: Parent id.
        children: Collection name to the parent's own children.
        foreign: Collection name to children of other parents that a payload
            referenced by id.
    """

    id: int
    children: Mapping[str, tuple[Attributes, ...]]
    foreign: Mapping[str, tuple[Attributes, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def of(
        cls,
        parent: Any,
        relations: Sequence[ChildRelation],
        foreign: Mapping[str, tuple[Attributes, ...]] | None = None,
    ) -> ParentSnapshot:
        """Snapshot an ORM parent whose collections are loaded."""
        return cls(
            id=parent.id,
            foreign=MappingProxyType(dict(foreign or {})),
            children=MappingProxyType(
                {
                    relation.name: tuple(
                        MappingProxyType(column_attributes(child))
                        for child in getattr(parent, relation.name)
                    )
                    for relation in relations
                }
            ),
        )

    def find_child(self, name: str, child_id: Any) -> Attributes | None:
        for child in self.children.get(name, ()):
            if child["id"] == child_id:
                return child
        return None

    def find_foreign(self, name: str, child_id: Any) -> Attributes | None:
        for child in self.foreign.get(name, ()):
            if child["id"] == child_id:
                return child
        return None


def load_foreign_children(
    session: Session,
    parent: Any,
    relations: Sequence[ChildRelation],
    payload: Mapping[str, Sequence[Attributes]],
) -> dict[str, tuple[Attributes, ...]]:
    """Load children referenced by id in ``payload`` that belong to another parent.

    Only reads. The result feeds ``ParentSnapshot.of`` so that ``compute_diff``
    can tell a foreign child apart from a missing one.
    """
    foreign: dict[str, tuple[Attributes, ...]] = {}
    for relation in relations:
        own = {child.id for child in getattr(parent, relation.name)}
        wanted = {
            item["id"]
            for item in payload.get(relation.name) or ()
            if item.get("id") is not None and item["id"] not in own
        }
        if not wanted:
            continue
        model: Any = relation.model
        rows = session.execute(select(model).where(model.id.in_(wanted))).scalars().all()
        foreign[relation.name] = tuple(MappingProxyType(column_attributes(row)) for row in rows)
    return foreign


@dataclass(frozen=True)
class CollectionDiff:
    """Partition of one collection's payload.

    Attributes:
        new: Attributes of children to insert.
        updated: Merged attributes of existing children, ``id`` included.
        updated_ids: Ids of ``updated``.
    """

    new: tuple[Attributes, ...] = ()
    updated: tuple[Attributes, ...] = ()
    updated_ids: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class DiffResult:
    """Partition of every collection of a parent."""

    parent_id: int
    collections: Mapping[str, CollectionDiff]

    def __getitem__(self, name: str) -> CollectionDiff:
        return self.collections[name]


def compute_diff(
    parent: ParentSnapshot,
    relations: Sequence[ChildRelation],
    payload: Mapping[str, Sequence[Attributes]],
) -> DiffResult | RegistrationError:
    """Partition a client payload against a parent's loaded children.

    Collections missing from ``payload`` are treated as empty. Inputs are
    never modified; merged children are new mappings.

    Args:
        parent: Snapshot of the parent and its current children.
        relations: The parent type's child collections.
        payload: Collection name to list of raw child attributes.

    Returns:
        The complete partition, or the error for the first object that
        cannot be classified (``NotFoundError`` for an unknown id,
        ``UnauthorizedError`` for a child owned by another parent).
    """
    collections: dict[str, CollectionDiff] = {}

    for relation in relations:
        new: list[Attributes] = []
        updated: list[Attributes] = []
        updated_ids: set[int] = set()

        for item in payload.get(relation.name) or ():
            child_id = item.get("id")
            if child_id is None:
                attrs = {k: v for k, v in item.items() if k != "id"}
                attrs[relation.foreign_key] = parent.id
                new.append(MappingProxyType(attrs))
                continue

            existing = parent.find_child(relation.name, child_id)
            if existing is None and parent.find_foreign(relation.name, child_id) is not None:
                return UnauthorizedError(
                    f"A {relation.model.__name__} that does not belong to this "
                    "record cannot be updated here",
                    f"{relation.name}.id",
                )
            if existing is None:
                return NotFoundError(
                    f"A {relation.model.__name__} with the given ID does not exist",
                    f"{relation.name}.id",
                )
            if existing[relation.foreign_key] != parent.id:
                return UnauthorizedError(
                    f"A {relation.model.__name__} that does not belong to this "
                    "record cannot be updated here",
                    f"{relation.name}.id",
                )

            # The payload's foreign key is never trusted
            merged = {**existing, **item, relation.foreign_key: parent.id}
            updated.append(MappingProxyType(merged))
            updated_ids.add(child_id)

        collections[relation.name] = CollectionDiff(
            new=tuple(new),
            updated=tuple(updated),
            updated_ids=frozenset(updated_ids),
        )

    return DiffResult(parent_id=parent.id, collections=MappingProxyType(collections))


def validate_children(diff: DiffResult, relations: Sequence[ChildRelation]) -> DiffResult:
    """Validate every child of a diff against its relation's schema.

    Returns:
        A new DiffResult holding only schema fields, plus ``id`` for updated
        children and the foreign key for all of them.

    Raises:
        ValidationError: If a child is incomplete or invalid, or a collection
            holds more than ``max_items`` children.
    """
    collections: dict[str, CollectionDiff] = {}
    for relation in relations:
        changes = diff[relation.name]
        total = len(changes.new) + len(changes.updated)
        if relation.max_items is not None and total > relation.max_items:
            raise ValidationError(
                "The request body failed validation",
                [
                    {
                        "source": relation.name,
                        "message": f"at most {relation.max_items} items are allowed",
                    }
                ],
            )

        def _clean(attrs: Attributes, keep_id: bool) -> Attributes:
            cleaned = validate_attributes(relation.schema, attrs, prefix=relation.name)
            cleaned[relation.foreign_key] = diff.parent_id
            if keep_id:
                cleaned["id"] = attrs["id"]
            return MappingProxyType(cleaned)

        collections[relation.name] = CollectionDiff(
            new=tuple(_clean(attrs, keep_id=False) for attrs in changes.new),
            updated=tuple(_clean(attrs, keep_id=True) for attrs in changes.updated),
            updated_ids=changes.updated_ids,
        )
    return DiffResult(parent_id=diff.parent_id, collections=MappingProxyType(collections))


def _delete_orphans(session: Session, relation: ChildRelation, parent_id: int, keep: frozenset[int]) -> int:
    model: Any = relation.model
    stmt = delete(model).where(getattr(model, relation.foreign_key) == parent_id)
    if keep:
        stmt = stmt.where(model.id.not_in(keep))
    result = session.execute(stmt, execution_options={"synchronize_session": False})
    return result.rowcount or 0


def _update_children(session: Session, relation: ChildRelation, children: Sequence[Attributes]) -> None:
    model: Any = relation.model
    for attrs in children:
        values = {k: v for k, v in attrs.items() if k != "id"}
        session.execute(
            update(model).where(model.id == attrs["id"]).values(**values),
            execution_options={"synchronize_session": False},
        )


def _insert_children(session: Session, relation: ChildRelation, children: Sequence[Attributes]) -> None:
    for attrs in children:
        session.add(relation.model(**attrs))
    session.flush()


def apply_diff(
    session: Session,
    parent: Any,
    relations: Sequence[ChildRelation],
    diff: DiffResult,
) -> None:
    """Write a diff inside the caller's transaction.

    Per collection: delete the parent's children not in ``updated_ids``,
    update the matched ones, then insert the new ones. The parent's
    in-memory collections are reset and reload on next access.

    Args:
        session: Session of the enclosing transaction.
        parent: ORM parent the diff was computed against.
        relations: The parent type's child collections.
        diff: Result of ``compute_diff`` for this parent.
    """
    for relation in relations:
        for child in getattr(parent, relation.name):
            session.expire(child)
        session.expire(parent, [relation.name])

    for relation in relations:
        changes = diff[relation.name]
        deleted = _delete_orphans(session, relation, parent.id, changes.updated_ids)
        _update_children(session, relation, changes.updated)
        logger.debug(
            "%s %d: %s deleted=%d updated=%d",
            type(parent).__name__,
            parent.id,
            relation.name,
            deleted,
            len(changes.updated),
        )

    for relation in relations:
        changes = diff[relation.name]
        _insert_children(session, relation, changes.new)
        logger.debug(
            "%s %d: %s inserted=%d",
            type(parent).__name__,
            parent.id,
            relation.name,
            len(changes.new),
        )
