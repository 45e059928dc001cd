"""Configuration for the hackreg server.

Settings are read from ``HACKREG_*`` environment variables once, at process
start, into plain dataclasses.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class MailSettings:
    """Connection settings for the mailing-list provider.

    Attributes:
        api_url: Base URL of the provider API. ``None`` disables mailing.
        api_key: Key sent as a bearer token to the provider.
        timeout: Request timeout in seconds.
        workers: Number of background threads running mail commands.
    """

    api_url: str | None = None
    api_key: str = ""
    timeout: float = 10.0
    workers: int = 2

    def __post_init__(self) -> None:
        """Normalize provider URL."""
        if self.api_url:
            object.__setattr__(self, "api_url", self.api_url.rstrip("/"))

    @property
    def enabled(self) -> bool:
        """Check if a mail provider is configured."""
        return bool(self.api_url)


@dataclass(frozen=True)
class ServerSettings:
    """Server settings.

    Attributes:
        db_path: Path to the SQLite database file.
        log_path: Path to the server log file.
        mail: Mail provider settings.
    """

    db_path: Path = Path("hackreg.db")
    log_path: Path = Path("hackreg-server.log")
    mail: MailSettings = MailSettings()

    @classmethod
    def from_env(cls) -> ServerSettings:
        """Build settings from ``HACKREG_*`` environment variables."""
        return cls(
            db_path=Path(os.environ.get("HACKREG_DB_PATH", "hackreg.db")),
            log_path=Path(os.environ.get("HACKREG_LOG_PATH", "hackreg-server.log")),
            mail=MailSettings(
                api_url=os.environ.get("HACKREG_MAIL_API_URL") or None,
                api_key=os.environ.get("HACKREG_MAIL_API_KEY", ""),
                timeout=float(os.environ.get("HACKREG_MAIL_TIMEOUT", "10")),
                workers=int(os.environ.get("HACKREG_MAIL_WORKERS", "2")),
            ),
        )
