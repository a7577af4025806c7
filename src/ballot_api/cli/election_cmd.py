"""CLI commands for election lifecycle and results.

Operator commands: they act without an authenticated actor, so ownership
checks do not apply, but every lifecycle rule does.
"""

import asyncio
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.lib.ballot import BallotError

if TYPE_CHECKING:
    from ballot_api.schemas.results import ElectionResultsResponse

election_app = typer.Typer()


def _parse_datetime(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        typer.echo(f"Error: invalid timestamp '{value}'", err=True)
        raise typer.Exit(code=1) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@asynccontextmanager
async def _session() -> AsyncIterator[AsyncSession]:
    from ballot_api.core.config import get_settings
    from ballot_api.core.database import dispose_engine, get_session_factory, init_engine

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        async with get_session_factory()() as session:
            yield session
    finally:
        await dispose_engine()


def _run(coro: Coroutine[Any, Any, None]) -> None:
    """Run a command coroutine, reporting business errors as exit code 1."""
    try:
        asyncio.run(coro)
    except BallotError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1) from e


@election_app.command("create")
def create(
    title: Annotated[str, typer.Option("--title", help="Election title")],
    start: Annotated[str, typer.Option("--start", help="Voting window start (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="Voting window end (ISO 8601)")],
    description: Annotated[str | None, typer.Option("--description", help="Election description")] = None,
) -> None:
    """Create a draft election."""
    _run(_create_impl(title, _parse_datetime(start), _parse_datetime(end), description))


async def _create_impl(title: str, start: datetime, end: datetime, description: str | None) -> None:
    from ballot_api.schemas.election import ElectionCreateRequest
    from ballot_api.services import election_service

    request = ElectionCreateRequest(title=title, description=description, start_datetime=start, end_datetime=end)
    async with _session() as session:
        election = await election_service.create_election(session, None, request)
        typer.echo(f"Created election {election.id}: {election.title} ({election.status})")


async def _transition(election_id: int, status: str) -> None:
    from ballot_api.schemas.election import ElectionUpdateRequest
    from ballot_api.services import election_service

    async with _session() as session:
        election = await election_service.update_election(
            session, None, election_id, ElectionUpdateRequest(status=status)
        )
        typer.echo(f"Election {election.id} is now {election.status}")


@election_app.command("open")
def open_election(
    election_id: Annotated[int, typer.Argument(help="Election ID")],
) -> None:
    """Open a draft election for voting."""
    _run(_transition(election_id, "open"))


@election_app.command("close")
def close_election(
    election_id: Annotated[int, typer.Argument(help="Election ID")],
) -> None:
    """Close an open election."""
    _run(_transition(election_id, "closed"))


async def _tally(election_id: int) -> "ElectionResultsResponse":
    from ballot_api.lib.ballot import ElectionNotFoundError
    from ballot_api.services.results_service import tally_election

    async with _session() as session:
        results = await tally_election(session, election_id)
    if results is None:
        msg = "Election not found."
        raise ElectionNotFoundError(msg)
    return results


@election_app.command("results")
def results(
    election_id: Annotated[int, typer.Argument(help="Election ID")],
) -> None:
    """Print the live tally of an election."""
    _run(_results_impl(election_id))


async def _results_impl(election_id: int) -> None:
    tally = await _tally(election_id)
    typer.echo(f"{tally.title} [{tally.status}]")
    typer.echo(
        f"Turnout: {tally.voters_participated}/{tally.total_voters} ({tally.voter_turnout_percentage:.2f}%)"
    )
    for position in tally.positions:
        typer.echo(f"\n{position.title} ({position.total_votes} votes)")
        for rank, candidate in enumerate(position.candidates, start=1):
            typer.echo(f"  {rank:>2}. {candidate.name:<30} {candidate.votes:>6} {candidate.percentage:>7.2f}%")


@election_app.command("export")
def export(
    election_id: Annotated[int, typer.Argument(help="Election ID")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output CSV path")] = None,
) -> None:
    """Export the tally of an election to CSV."""
    _run(_export_impl(election_id, output or Path(f"election_{election_id}_results.csv")))


async def _export_impl(election_id: int, output: Path) -> None:
    from ballot_api.lib.exporter import write_results_csv

    tally = await _tally(election_id)
    rows = write_results_csv(output, tally.model_dump())
    logger.info("Exported {} result rows for election {} to {}", rows, election_id, output)
    typer.echo(f"Wrote {rows} rows to {output}")
