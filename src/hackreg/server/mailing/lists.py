"""Mailing lists and their provider identifiers.

Lists are a closed set. ``MailConfig`` maps each one to the identifier the
provider knows it by and is built once at start-up.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from hackreg.core.types import MAX_WAVE


class MailList(str, Enum):
    """Mailing lists driven by attendee decisions."""

    WAVE_1 = "wave1"
    WAVE_2 = "wave2"
    WAVE_3 = "wave3"
    WAVE_4 = "wave4"
    WAVE_5 = "wave5"
    REJECTED = "rejected"
    WAITLISTED = "waitlisted"
    LIGHTNING_TALKS = "lightning_talks"

    @classmethod
    def for_wave(cls, wave: int) -> MailList:
        """Get the list of an acceptance wave.

        Raises:
            ValueError: If ``wave`` is outside 1..MAX_WAVE.
        """
        if not 1 <= wave <= MAX_WAVE:
            raise ValueError(f"No mailing list for wave {wave}")
        return cls(f"wave{wave}")


def _default_list_ids() -> Mapping[MailList, str]:
    return MappingProxyType({mail_list: mail_list.value for mail_list in MailList})


@dataclass(frozen=True)
class MailConfig:
    """Provider identifiers of every mailing list.

    Attributes:
        list_ids: MailList to provider list identifier.
    """

    list_ids: Mapping[MailList, str] = field(default_factory=_default_list_ids)

    def list_id(self, mail_list: MailList) -> str:
        return self.list_ids[mail_list]

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, str]) -> MailConfig:
        """Build from list name overrides; unnamed lists keep their name.

        Raises:
            ValueError: If a key is not a known list name.
        """
        ids = {mail_list: mail_list.value for mail_list in MailList}
        for name, list_id in overrides.items():
            ids[MailList(name)] = str(list_id)
        return cls(list_ids=MappingProxyType(ids))

    @classmethod
    def from_env(cls) -> MailConfig:
        """Build from the ``HACKREG_MAIL_LISTS`` JSON object, if set."""
        raw = os.environ.get("HACKREG_MAIL_LISTS")
        if not raw:
            return cls()
        return cls.from_mapping(json.loads(raw))
