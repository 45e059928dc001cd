"""Mailing-list side effects of attendee decisions.

- lists: closed set of lists and their provider identifiers
- decisions: transition table turning decision changes into commands
- client: provider client
- dispatch: fire-and-forget execution of commands
"""

from hackreg.server.mailing.client import (
    HTTPMailListClient,
    MailListClient,
    MailProviderError,
)
from hackreg.server.mailing.decisions import (
    DecisionSnapshot,
    MailAction,
    MailCommand,
    plan_mail_commands,
)
from hackreg.server.mailing.dispatch import MailDispatcher
from hackreg.server.mailing.lists import MailConfig, MailList

__all__ = [
    # client
    "HTTPMailListClient",
    "MailListClient",
    "MailProviderError",
    # decisions
    "DecisionSnapshot",
    "MailAction",
    "MailCommand",
    "plan_mail_commands",
    # dispatch
    "MailDispatcher",
    # lists
    "MailConfig",
    "MailList",
]
