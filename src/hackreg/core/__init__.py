"""Core module - Shared configuration and types."""

from hackreg.core.config import MailSettings, ServerSettings
from hackreg.core.types import (
    MAX_WAVE,
    ORGANIZERS,
    DecisionStatus,
    Role,
)

__all__ = [
    # Config
    "MailSettings",
    "ServerSettings",
    # Types
    "DecisionStatus",
    "MAX_WAVE",
    "ORGANIZERS",
    "Role",
]
