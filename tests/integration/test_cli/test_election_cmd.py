"""Integration tests for the user and election CLI commands against a SQLite file."""

import asyncio
import csv
from collections.abc import Iterator
from pathlib import Path

import pytest
from factories import create_election, create_user
from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from typer.testing import CliRunner

from ballot_api.cli.app import app
from ballot_api.lib.ballot import Selection
from ballot_api.models.base import Base
from ballot_api.services.authorization_service import RolePolicy
from ballot_api.services.vote_service import submit_ballot

runner = CliRunner()


@pytest.fixture
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """A migrated-equivalent SQLite file wired into the CLI's settings."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret-key-not-for-production")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    async def _create_all() -> None:
        engine = create_async_engine(url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(_create_all())
    yield url
    # The CLI points loguru at the runner's captured stderr.
    logger.remove()


def _seed(url: str, seeder) -> object:
    async def _run() -> object:
        engine = create_async_engine(url)
        try:
            async with async_sessionmaker(engine, expire_on_commit=False)() as session:
                return await seeder(session)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


class TestUserCommands:
    def test_create_and_list(self, database_url: str) -> None:
        result = runner.invoke(
            app,
            ["user", "create", "--username", "clerk", "--name", "Clerk", "--password", "password123",
             "--role", "election_admin"],
        )
        assert result.exit_code == 0, result.output
        assert "User 'clerk' created with role 'election_admin'" in result.output

        result = runner.invoke(app, ["user", "list"])
        assert result.exit_code == 0
        assert "clerk" in result.output
        assert "Total: 1" in result.output

    def test_if_not_exists(self, database_url: str) -> None:
        args = ["user", "create", "--username", "alice", "--name", "Alice", "--password", "password123"]
        assert runner.invoke(app, args).exit_code == 0

        assert runner.invoke(app, args).exit_code == 1
        result = runner.invoke(app, [*args, "--if-not-exists"])
        assert result.exit_code == 0
        assert "already exists, skipping" in result.output

    def test_invalid_role(self, database_url: str) -> None:
        result = runner.invoke(
            app,
            ["user", "create", "--username", "bob", "--name", "Bob", "--password", "password123", "--role", "admin"],
        )
        assert result.exit_code == 1


class TestElectionCommands:
    def test_create_draft(self, database_url: str) -> None:
        result = runner.invoke(
            app,
            ["election", "create", "--title", "Board 2026", "--start", "2026-11-01T08:00:00",
             "--end", "2026-11-01T20:00:00+00:00"],
        )
        assert result.exit_code == 0, result.output
        assert "Board 2026 (draft)" in result.output

    def test_create_rejects_bad_window(self, database_url: str) -> None:
        result = runner.invoke(
            app,
            ["election", "create", "--title", "Backwards", "--start", "2026-11-02T00:00:00",
             "--end", "2026-11-01T00:00:00"],
        )
        assert result.exit_code == 1
        assert "Election end time must be after start time." in result.output

    def test_create_rejects_bad_timestamp(self, database_url: str) -> None:
        result = runner.invoke(app, ["election", "create", "--title", "X", "--start", "soon", "--end", "later"])
        assert result.exit_code == 1

    def test_open_vote_close_and_export(self, database_url: str, tmp_path: Path) -> None:
        election = _seed(database_url, lambda session: create_election(session, status="draft"))

        result = runner.invoke(app, ["election", "open", str(election.id)])
        assert result.exit_code == 0, result.output
        assert f"Election {election.id} is now open" in result.output

        async def _vote(session) -> None:
            voter = await create_user(session, "alice")
            position = election.positions[0]
            await submit_ballot(
                session, voter, election.id, [Selection(position.id, position.candidates[1].id)], policy=RolePolicy()
            )

        _seed(database_url, _vote)

        result = runner.invoke(app, ["election", "close", str(election.id)])
        assert result.exit_code == 0
        assert "is now closed" in result.output

        result = runner.invoke(app, ["election", "close", str(election.id)])
        assert result.exit_code == 1
        assert "Closed elections are locked and cannot be modified." in result.output

        result = runner.invoke(app, ["election", "results", str(election.id)])
        assert result.exit_code == 0
        assert "Turnout: 1/1 (100.00%)" in result.output
        assert "Bob" in result.output

        output = tmp_path / "out.csv"
        result = runner.invoke(app, ["election", "export", str(election.id), "--output", str(output)])
        assert result.exit_code == 0
        assert "Wrote 2 rows" in result.output
        with output.open() as f:
            rows = list(csv.DictReader(f))
        assert [(row["Candidate"], row["Votes"]) for row in rows] == [("Bob", "1"), ("Alice", "0")]

    def test_open_empty_ballot_fails(self, database_url: str) -> None:
        election = _seed(database_url, lambda session: create_election(session, status="draft", ballot=[]))
        result = runner.invoke(app, ["election", "open", str(election.id)])
        assert result.exit_code == 1
        assert "no positions are configured" in result.output

    def test_unknown_election(self, database_url: str) -> None:
        result = runner.invoke(app, ["election", "results", "404"])
        assert result.exit_code == 1
        assert "Election not found." in result.output
