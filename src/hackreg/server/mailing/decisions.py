"""Mailing-list commands for attendee decision changes.

Status lists:
| Old status | New status | Condition     | Remove      | Add         |
|------------|------------|---------------|-------------|-------------|
| PENDING    | ACCEPTED   |               |             | wave<new>   |
| PENDING    | REJECTED   |               |             | rejected    |
| PENDING    | WAITLISTED |               |             | waitlisted  |
| ACCEPTED   | ACCEPTED   | wave changed  | wave<old>   | wave<new>   |
| WAITLISTED | ACCEPTED   |               | waitlisted  | wave<new>   |
| WAITLISTED | REJECTED   |               | waitlisted  | rejected    |
| *          | *          |               | (no action)               |

Lightning talks list, independently:
- leaving ACCEPTED: remove
- becoming ACCEPTED with interest: add
- staying ACCEPTED with interest toggled: add or remove

Nothing is sent when the new status is unknown or PENDING.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from hackreg.core.types import DecisionStatus
from hackreg.server.mailing.lists import MailList


class MailAction(Enum):
    """What to do with a list membership."""

    ADD = auto()
    REMOVE = auto()


class ListTarget(Enum):
    """List named by a rule, resolved against the decision snapshots."""

    OLD_WAVE = auto()
    NEW_WAVE = auto()
    REJECTED = auto()
    WAITLISTED = auto()


@dataclass(frozen=True)
class MailCommand:
    """Add a user to, or remove a user from, one list."""

    action: MailAction
    mail_list: MailList


@dataclass(frozen=True)
class DecisionSnapshot:
    """Decision fields of an attendee at one point in time."""

    status: DecisionStatus | None
    wave: int = 0
    has_lightning_interest: bool = False

    @classmethod
    def from_attributes(cls, attrs: Mapping[str, Any]) -> DecisionSnapshot:
        status = attrs.get("status")
        return cls(
            status=DecisionStatus(status) if status is not None else None,
            wave=attrs.get("wave") or 0,
            has_lightning_interest=bool(attrs.get("has_lightning_interest")),
        )


@dataclass(frozen=True)
class TransitionRule:
    """A row of the status-list table."""

    old_status: DecisionStatus
    new_status: DecisionStatus
    remove: tuple[ListTarget, ...]
    add: tuple[ListTarget, ...]
    wave_changed: bool = False


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(
        old_status=DecisionStatus.PENDING,
        new_status=DecisionStatus.ACCEPTED,
        remove=(),
        add=(ListTarget.NEW_WAVE,),
    ),
    TransitionRule(
        old_status=DecisionStatus.PENDING,
        new_status=DecisionStatus.REJECTED,
        remove=(),
        add=(ListTarget.REJECTED,),
    ),
    TransitionRule(
        old_status=DecisionStatus.PENDING,
        new_status=DecisionStatus.WAITLISTED,
        remove=(),
        add=(ListTarget.WAITLISTED,),
    ),
    TransitionRule(
        old_status=DecisionStatus.ACCEPTED,
        new_status=DecisionStatus.ACCEPTED,
        remove=(ListTarget.OLD_WAVE,),
        add=(ListTarget.NEW_WAVE,),
        wave_changed=True,
    ),
    TransitionRule(
        old_status=DecisionStatus.WAITLISTED,
        new_status=DecisionStatus.ACCEPTED,
        remove=(ListTarget.WAITLISTED,),
        add=(ListTarget.NEW_WAVE,),
    ),
    TransitionRule(
        old_status=DecisionStatus.WAITLISTED,
        new_status=DecisionStatus.REJECTED,
        remove=(ListTarget.WAITLISTED,),
        add=(ListTarget.REJECTED,),
    ),
]


def _resolve(target: ListTarget, old: DecisionSnapshot, new: DecisionSnapshot) -> MailList:
    if target is ListTarget.OLD_WAVE:
        return MailList.for_wave(old.wave)
    if target is ListTarget.NEW_WAVE:
        return MailList.for_wave(new.wave)
    if target is ListTarget.REJECTED:
        return MailList.REJECTED
    return MailList.WAITLISTED


def _find_rule(old: DecisionSnapshot, new: DecisionSnapshot) -> TransitionRule | None:
    for rule in TRANSITION_RULES:
        if rule.old_status != old.status or rule.new_status != new.status:
            continue
        if rule.wave_changed and old.wave == new.wave:
            continue
        return rule
    return None


def _status_commands(old: DecisionSnapshot, new: DecisionSnapshot) -> list[MailCommand]:
    rule = _find_rule(old, new)
    if rule is None:
        return []
    return [MailCommand(MailAction.REMOVE, _resolve(t, old, new)) for t in rule.remove] + [
        MailCommand(MailAction.ADD, _resolve(t, old, new)) for t in rule.add
    ]


def _lightning_commands(old: DecisionSnapshot, new: DecisionSnapshot) -> list[MailCommand]:
    was_accepted = old.status == DecisionStatus.ACCEPTED
    is_accepted = new.status == DecisionStatus.ACCEPTED

    if was_accepted and not is_accepted:
        return [MailCommand(MailAction.REMOVE, MailList.LIGHTNING_TALKS)]
    if is_accepted and not was_accepted:
        if new.has_lightning_interest:
            return [MailCommand(MailAction.ADD, MailList.LIGHTNING_TALKS)]
        return []
    if is_accepted and old.has_lightning_interest != new.has_lightning_interest:
        action = MailAction.ADD if new.has_lightning_interest else MailAction.REMOVE
        return [MailCommand(action, MailList.LIGHTNING_TALKS)]
    return []


def plan_mail_commands(old: DecisionSnapshot, new: DecisionSnapshot) -> list[MailCommand]:
    """Compute the list commands for a decision change.

    Args:
        old: Decision state before the update.
        new: Decision state after the update.

    Returns:
        Status-list commands (removals first) followed by lightning-list
        commands. Empty for no-op updates.
    """
    if new.status is None or new.status == DecisionStatus.PENDING:
        return []
    return _status_commands(old, new) + _lightning_commands(old, new)
