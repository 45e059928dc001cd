"""FastAPI application for the hackreg server.

This module creates and configures the FastAPI application with:
- REST API for mentor and attendee registration, decisions and check-in
- Error responses built from RegistrationError

Usage:
    uvicorn hackreg.server.app:app_factory --factory --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hackreg.core.config import ServerSettings
from hackreg.server.api.router import router as api_router
from hackreg.server.database import Database
from hackreg.server.errors import RegistrationError, ValidationError
from hackreg.server.mailing import HTTPMailListClient, MailConfig, MailDispatcher
from hackreg.server.services import AttendeeService, CheckInService, MentorService

logger = logging.getLogger(__name__)


def setup_logging(log_path: Path) -> None:
    """Configure logging to output to both file and stdout.

    Args:
        log_path: Path to the log file.
    """
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    root_logger = logging.getLogger("hackreg")
    root_logger.setLevel(logging.INFO)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Also capture uvicorn logs to file
    for uvicorn_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(uvicorn_name).addHandler(file_handler)


def _registration_error_handler(request: Request, exc: RegistrationError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"error": exc.to_dict()}, status_code=exc.status_code)


def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        # Drop the "body"/"query"/"path" prefix
        loc = [str(part) for part in err["loc"][1:]] or [str(err["loc"][0])]
        errors.append({"source": ".".join(loc), "message": err["msg"]})
    return _registration_error_handler(
        request, ValidationError("The request failed validation", errors)
    )


def create_app(db: Database, mail: MailDispatcher | None = None) -> FastAPI:
    """Create FastAPI application with custom database and mailer.

    This is primarily used for testing with isolated databases.

    Args:
        db: Database instance.
        mail: Optional dispatcher for mailing-list updates. Without one,
            decisions are recorded but no mail is sent.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        logger.info("=" * 60)
        logger.info("hackreg Server Starting")
        logger.info("=" * 60)
        logger.info("  Database: %s", db.path)
        logger.info("  Mail:     %s", "enabled" if mail else "disabled")
        logger.info("=" * 60)

        yield

        logger.info("hackreg Server shutting down")
        if mail is not None:
            mail.shutdown()

    application = FastAPI(
        title="hackreg Server",
        description="Hackathon registration, review and check-in",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.state.db = db
    application.state.mentors = MentorService(db)
    application.state.attendees = AttendeeService(db, mailer=mail)
    application.state.checkins = CheckInService(db)

    application.add_exception_handler(RegistrationError, _registration_error_handler)
    application.add_exception_handler(RequestValidationError, _request_validation_handler)
    application.include_router(api_router)

    return application


def app_factory() -> FastAPI:
    """Factory function for uvicorn --factory mode."""
    settings = ServerSettings.from_env()
    setup_logging(settings.log_path)

    mail = None
    if settings.mail.enabled:
        mail = MailDispatcher(
            HTTPMailListClient.from_settings(settings.mail),
            MailConfig.from_env(),
            max_workers=settings.mail.workers,
        )
    return create_app(db=Database(settings.db_path), mail=mail)
