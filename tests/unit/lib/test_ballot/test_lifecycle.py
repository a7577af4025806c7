"""Tests for the election lifecycle state machine."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from ballot_api.lib.ballot.errors import BallotValidationError, ElectionStateError
from ballot_api.lib.ballot.lifecycle import (
    ElectionStatus,
    as_utc,
    check_ballot_editable,
    check_deletable,
    fill_problem,
    has_ended,
    has_started,
    is_accepting_votes,
    plan_update,
    validate_window,
)
from ballot_api.lib.ballot.schema import BallotPosition

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakeElection:
    status: str
    start_datetime: datetime
    end_datetime: datetime


def _election(status: str = "draft", start_offset: int = -1, end_offset: int = 1) -> FakeElection:
    return FakeElection(
        status=status,
        start_datetime=NOW + timedelta(hours=start_offset),
        end_datetime=NOW + timedelta(hours=end_offset),
    )


def _position(title: str = "President", max_votes: int = 1, candidates: int = 2) -> BallotPosition:
    return BallotPosition(
        id=1,
        title=title,
        min_votes_allowed=1,
        max_votes_allowed=max_votes,
        candidate_ids=frozenset(range(100, 100 + candidates)),
    )


class TestPredicates:
    def test_has_started_is_inclusive(self) -> None:
        election = _election(start_offset=0)
        assert has_started(election, NOW)
        assert not has_started(election, NOW - timedelta(seconds=1))

    def test_has_ended_at_end_instant(self) -> None:
        election = _election(end_offset=0)
        assert has_ended(election, NOW)
        assert not has_ended(election, NOW - timedelta(microseconds=1))

    def test_has_ended_ignores_status(self) -> None:
        assert has_ended(_election(status="open", end_offset=-1), NOW)

    def test_accepting_votes_requires_open_and_not_ended(self) -> None:
        assert is_accepting_votes(_election(status="open"), NOW)
        assert not is_accepting_votes(_election(status="draft"), NOW)
        assert not is_accepting_votes(_election(status="open", end_offset=-1), NOW)

    def test_as_utc_treats_naive_as_utc(self) -> None:
        naive = datetime(2026, 3, 1, 12, 0)
        assert as_utc(naive) == NOW
        assert as_utc(naive).tzinfo is UTC

    def test_naive_stored_window_compares_with_aware_now(self) -> None:
        election = FakeElection("open", datetime(2026, 3, 1, 11, 0), datetime(2026, 3, 1, 13, 0))
        assert is_accepting_votes(election, NOW)


class TestFillProblem:
    def test_no_positions(self) -> None:
        assert fill_problem([]) == "Election cannot be opened because no positions are configured."

    def test_single_slot_unfilled(self) -> None:
        message = fill_problem([_position(max_votes=1, candidates=0)])
        assert message == "President position slot is not filled (0/1 candidate)."

    def test_multiple_slots_unfilled(self) -> None:
        message = fill_problem([_position(title="Senator", max_votes=2, candidates=1)])
        assert message == "Senator position slots are not filled (1/2 candidates)."

    def test_first_unfilled_position_wins(self) -> None:
        positions = [
            _position(title="President"),
            _position(title="Treasurer", candidates=0),
            _position(title="Secretary", candidates=0),
        ]
        assert fill_problem(positions).startswith("Treasurer")

    def test_filled_ballot(self) -> None:
        assert fill_problem([_position(max_votes=2, candidates=2)]) is None


class TestValidateWindow:
    def test_end_before_start(self) -> None:
        with pytest.raises(BallotValidationError, match="Election end time must be after start time."):
            validate_window(NOW, NOW - timedelta(minutes=1))

    def test_equal_bounds_rejected(self) -> None:
        with pytest.raises(BallotValidationError):
            validate_window(NOW, NOW)

    def test_valid_window(self) -> None:
        validate_window(NOW, NOW + timedelta(minutes=1))


class TestPlanUpdate:
    def test_closed_is_locked(self) -> None:
        with pytest.raises(ElectionStateError, match="Closed elections are locked"):
            plan_update(_election("closed"), {"title": "New"}, [], NOW)

    def test_open_cannot_return_to_draft(self) -> None:
        with pytest.raises(ElectionStateError, match="cannot move from open back to draft"):
            plan_update(_election("open"), {"status": "draft"}, [], NOW)

    def test_draft_cannot_close(self) -> None:
        with pytest.raises(ElectionStateError, match="Only open elections can be closed."):
            plan_update(_election("draft"), {"status": "closed"}, [], NOW)

    def test_open_before_start_without_override(self) -> None:
        election = _election(start_offset=1, end_offset=2)
        with pytest.raises(ElectionStateError, match="Election cannot be opened before its start time."):
            plan_update(election, {"status": "open"}, [_position()], NOW)

    def test_open_before_start_with_override(self) -> None:
        election = _election(start_offset=1, end_offset=2)
        updates = plan_update(election, {"status": "open"}, [_position()], NOW, can_override_schedule=True)
        assert updates == {"status": "open"}

    def test_open_after_end(self) -> None:
        election = _election(start_offset=-2, end_offset=0)
        with pytest.raises(ElectionStateError, match="Election has expired and cannot be opened."):
            plan_update(election, {"status": "open"}, [_position()], NOW, can_override_schedule=True)

    def test_open_with_unfilled_ballot(self) -> None:
        with pytest.raises(ElectionStateError, match=r"President position slots are not filled \(1/2 candidates\)"):
            plan_update(_election(), {"status": "open"}, [_position(max_votes=2, candidates=1)], NOW)

    def test_open_uses_new_schedule(self) -> None:
        election = _election(start_offset=1, end_offset=2)
        updates = plan_update(
            election,
            {"status": "open", "start_datetime": NOW - timedelta(minutes=5)},
            [_position()],
            NOW,
        )
        assert updates["status"] == "open"
        assert updates["start_datetime"] == NOW - timedelta(minutes=5)

    def test_schedule_edit_rejects_inverted_window(self) -> None:
        with pytest.raises(BallotValidationError, match="Election end time must be after start time."):
            plan_update(_election(), {"end_datetime": NOW - timedelta(hours=2)}, [], NOW)

    def test_open_election_cannot_move_start_into_future(self) -> None:
        with pytest.raises(ElectionStateError, match="Election cannot be open before its start time."):
            plan_update(_election("open"), {"start_datetime": NOW + timedelta(minutes=30)}, [], NOW)

    def test_open_election_cannot_end_in_past(self) -> None:
        with pytest.raises(ElectionStateError, match="Election cannot remain open past its end time."):
            plan_update(
                _election("open", start_offset=-3),
                {"end_datetime": NOW - timedelta(hours=1)},
                [],
                NOW,
            )

    def test_closing_ends_window_now(self) -> None:
        updates = plan_update(_election("open", start_offset=-1, end_offset=5), {"status": "closed"}, [], NOW)
        assert updates["status"] == ElectionStatus.CLOSED.value
        assert updates["end_datetime"] == NOW
        assert updates["start_datetime"] == NOW - timedelta(hours=1)

    def test_closing_after_expiry_records_close_time(self) -> None:
        election = _election("open", start_offset=-5, end_offset=-2)
        updates = plan_update(election, {"status": "closed"}, [], NOW)
        assert updates["end_datetime"] == NOW
        assert updates["start_datetime"] == NOW - timedelta(hours=5)

    def test_closing_before_start_keeps_window_non_empty(self) -> None:
        election = _election("open", start_offset=1, end_offset=3)
        updates = plan_update(election, {"status": "closed"}, [], NOW)
        assert updates["end_datetime"] == NOW
        assert updates["start_datetime"] < updates["end_datetime"]
        assert updates["start_datetime"] == NOW - timedelta(microseconds=1)

    def test_plain_edit_passes_through(self) -> None:
        updates = plan_update(_election(), {"title": "Renamed", "description": None}, [], NOW)
        assert updates == {"title": "Renamed", "description": None}

    def test_unknown_and_null_fields_dropped(self) -> None:
        updates = plan_update(_election(), {"title": None, "created_by": 9}, [], NOW)
        assert updates == {}

    def test_status_stored_as_plain_string(self) -> None:
        updates = plan_update(_election(), {"status": ElectionStatus.OPEN}, [_position()], NOW)
        assert type(updates["status"]) is str


class TestCheckDeletable:
    def test_draft_without_votes(self) -> None:
        check_deletable(_election("draft"), has_votes=False, can_delete_closed=False)

    def test_open_never(self) -> None:
        with pytest.raises(ElectionStateError, match="Only draft elections can be deleted."):
            check_deletable(_election("open"), has_votes=False, can_delete_closed=True)

    def test_closed_requires_privilege(self) -> None:
        with pytest.raises(ElectionStateError, match="Only super admins can delete closed elections."):
            check_deletable(_election("closed"), has_votes=False, can_delete_closed=False)
        check_deletable(_election("closed"), has_votes=False, can_delete_closed=True)

    def test_votes_block_deletion(self) -> None:
        with pytest.raises(ElectionStateError, match="Election with votes cannot be deleted."):
            check_deletable(_election("closed"), has_votes=True, can_delete_closed=True)


def test_ballot_edits_rejected_when_closed() -> None:
    with pytest.raises(ElectionStateError, match="Cannot add positions to a closed election."):
        check_ballot_editable(_election("closed"), "add positions to")
    check_ballot_editable(_election("open"), "add positions to")
