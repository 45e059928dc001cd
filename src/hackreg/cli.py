"""Command-line interface for hackreg.

Commands:
- serve: Run the API server
- create-user: Create a user and print an API token
- grant-role: Grant a role to an existing user
- revoke-tokens: Revoke every API token of a user
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click
from sqlalchemy.exc import IntegrityError

from hackreg.core.types import Role
from hackreg.server.database import Database

ROLE_CHOICE = click.Choice([role.value for role in Role], case_sensitive=False)


def _open_db(db_path: str | None) -> Database:
    resolved = Path(db_path or os.environ.get("HACKREG_DB_PATH", "hackreg.db"))
    return Database(resolved)


@click.group()
@click.version_option(package_name="hackreg")
def cli() -> None:
    """hackreg - Hackathon registration server."""


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", default=8000, show_default=True, type=int, help="Port to listen on.")
def serve(host: str, port: int) -> None:
    """Run the API server.

    Configuration is read from HACKREG_* environment variables.
    """
    import uvicorn

    uvicorn.run("hackreg.server.app:app_factory", factory=True, host=host, port=port)


@cli.command("create-user")
@click.argument("email")
@click.option(
    "--role",
    "roles",
    type=ROLE_CHOICE,
    multiple=True,
    help="Role to grant (repeatable).",
)
@click.option(
    "--db-path",
    type=click.Path(),
    default=None,
    help="Path to database file (default: HACKREG_DB_PATH or ./hackreg.db).",
)
def create_user(email: str, roles: tuple[str, ...], db_path: str | None) -> None:
    """Create a user and print a new API token.

    Examples:

        # Create an organizer account
        hackreg create-user staff@example.com --role STAFF
    """
    db = _open_db(db_path)
    try:
        try:
            user = db.create_user(email)
        except IntegrityError:
            click.echo(f"Error: A user with email {email} already exists", err=True)
            sys.exit(1)

        for role in roles:
            db.grant_role(user.id, Role(role.upper()))
        raw_token, _ = db.create_token(user.id)
    finally:
        db.close()

    click.echo(f"Created user {user.id} ({email})")
    if roles:
        click.echo(f"Roles: {', '.join(r.upper() for r in roles)}")
    click.echo(f"Token: {raw_token}")
    click.echo("Store this token now; it cannot be shown again.")


@cli.command("grant-role")
@click.argument("email")
@click.argument("role", type=ROLE_CHOICE)
@click.option(
    "--db-path",
    type=click.Path(),
    default=None,
    help="Path to database file (default: HACKREG_DB_PATH or ./hackreg.db).",
)
def grant_role(email: str, role: str, db_path: str | None) -> None:
    """Grant ROLE to the user with EMAIL."""
    db = _open_db(db_path)
    try:
        user = db.get_user_by_email(email)
        if user is None:
            click.echo(f"Error: No user with email {email}", err=True)
            sys.exit(1)
        db.grant_role(user.id, Role(role.upper()))
    finally:
        db.close()

    click.echo(f"Granted {role.upper()} to {email}")


@cli.command("revoke-tokens")
@click.argument("email")
@click.option(
    "--db-path",
    type=click.Path(),
    default=None,
    help="Path to database file (default: HACKREG_DB_PATH or ./hackreg.db).",
)
def revoke_tokens(email: str, db_path: str | None) -> None:
    """Revoke all API tokens of the user with EMAIL."""
    db = _open_db(db_path)
    try:
        user = db.get_user_by_email(email)
        if user is None:
            click.echo(f"Error: No user with email {email}", err=True)
            sys.exit(1)
        revoked = db.revoke_tokens(user.id)
    finally:
        db.close()

    click.echo(f"Revoked {revoked} token(s) for {email}")


if __name__ == "__main__":
    cli()
