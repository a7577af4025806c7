"""User management CLI commands."""

import asyncio

import typer

from ballot_api.models.user import ROLE_VOTER

user_app = typer.Typer()


@user_app.command("create")
def create_user(
    username: str = typer.Option(..., prompt=True, help="Username"),
    name: str = typer.Option(..., prompt=True, help="Display name"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"),
    role: str = typer.Option(ROLE_VOTER, help="User role (super_admin/election_admin/voter)"),
    email: str | None = typer.Option(None, help="Email address"),
    if_not_exists: bool = typer.Option(
        False,
        "--if-not-exists",
        help="Exit successfully if user already exists (idempotent mode)",
    ),
) -> None:
    """Create a new user."""
    asyncio.run(_create_user(username, name, password, role, email, if_not_exists=if_not_exists))


async def _create_user(
    username: str,
    name: str,
    password: str,
    role: str,
    email: str | None,
    *,
    if_not_exists: bool = False,
) -> None:
    """Async implementation of user creation."""
    from pydantic import ValidationError

    from ballot_api.core.config import get_settings
    from ballot_api.core.database import dispose_engine, get_session_factory, init_engine
    from ballot_api.schemas.auth import UserCreateRequest
    from ballot_api.services.auth_service import create_user

    try:
        request = UserCreateRequest(username=username, name=name, email=email, password=password, role=role)
    except ValidationError as e:
        typer.echo(f"Error: {e.errors()[0]['msg']} ({e.errors()[0]['loc'][0]})", err=True)
        raise typer.Exit(code=1) from e

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            user = await create_user(session, request)
            typer.echo(f"User '{user.username}' created with role '{user.role}'")
    except ValueError as e:
        if if_not_exists and "already exists" in str(e):
            typer.echo(f"User '{username}' already exists, skipping (--if-not-exists)")
            return
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()


@user_app.command("list")
def list_users() -> None:
    """List all users."""
    asyncio.run(_list_users())


async def _list_users() -> None:
    """Async implementation of user listing."""
    from ballot_api.core.config import get_settings
    from ballot_api.core.database import dispose_engine, get_session_factory, init_engine
    from ballot_api.services.auth_service import list_users

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            users = await list_users(session)
            typer.echo(f"{'ID':<6} {'Username':<20} {'Role':<16} {'Active':<8}")
            typer.echo("-" * 52)
            for user in users:
                typer.echo(f"{user.id:<6} {user.username:<20} {user.role:<16} {user.is_active!s:<8}")
            typer.echo(f"\nTotal: {len(users)}")
    finally:
        await dispose_engine()
