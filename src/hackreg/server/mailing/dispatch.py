"""Background execution of mailing-list commands.

Commands run on a small thread pool after the record transaction has
committed. A failing command is logged and dropped; the record stays the
source of truth.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor

import httpx

from hackreg.server.mailing.client import MailListClient, MailProviderError
from hackreg.server.mailing.decisions import MailAction, MailCommand
from hackreg.server.mailing.lists import MailConfig

logger = logging.getLogger(__name__)


class MailDispatcher:
    """Runs mail commands fire-and-forget.

    Usage:
        dispatcher = MailDispatcher(client, MailConfig.from_env())
        dispatcher.submit("ada@example.com", commands)

        # On shutdown
        dispatcher.shutdown()
    """

    def __init__(
        self,
        client: MailListClient,
        config: MailConfig | None = None,
        max_workers: int = 2,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            client: Provider client.
            config: List identifier table. Defaults to list names.
            max_workers: Number of background threads.
        """
        self._client = client
        self._config = config or MailConfig()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mail")

    def submit(self, email: str, commands: Sequence[MailCommand]) -> Future[int] | None:
        """Queue commands for one user.

        Args:
            email: Address of the user.
            commands: Commands to run, in order.

        Returns:
            A future resolving to the number of commands that succeeded, or
            None if there was nothing to do.
        """
        if not commands:
            return None
        logger.info(
            "Queueing %d mail command(s) for %s: %s",
            len(commands),
            email,
            ", ".join(f"{c.action.name.lower()} {c.mail_list.value}" for c in commands),
        )
        return self._executor.submit(self.run, email, list(commands))

    def run(self, email: str, commands: Sequence[MailCommand]) -> int:
        """Run commands now; failures are logged and skipped.

        Returns:
            Number of commands that succeeded.
        """
        succeeded = 0
        for command in commands:
            list_id = self._config.list_id(command.mail_list)
            try:
                if command.action is MailAction.ADD:
                    self._client.add_to_list(email, list_id)
                else:
                    self._client.remove_from_list(email, list_id)
                succeeded += 1
            except (MailProviderError, httpx.HTTPError) as e:
                logger.warning(
                    "Mail command %s %s for %s failed: %s",
                    command.action.name.lower(),
                    command.mail_list.value,
                    email,
                    e,
                )
            except Exception:
                logger.exception(
                    "Mail command %s %s for %s failed unexpectedly",
                    command.action.name.lower(),
                    command.mail_list.value,
                    email,
                )
        return succeeded

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting commands and close the client."""
        self._executor.shutdown(wait=wait)
        self._client.close()
