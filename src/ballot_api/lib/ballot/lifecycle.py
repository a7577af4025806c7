"""Election lifecycle state machine.

States advance ``draft -> open -> closed``; ``closed`` is terminal.  Every
predicate takes the current time explicitly.  Illegal transitions raise
``ElectionStateError`` (or ``BallotValidationError`` for a malformed
schedule) before anything is persisted.
"""

import enum
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from ballot_api.lib.ballot.errors import BallotValidationError, ElectionStateError
from ballot_api.lib.ballot.schema import BallotPosition

EDITABLE_FIELDS = frozenset({"title", "description", "start_datetime", "end_datetime", "status"})
_CLOSE_MARGIN = timedelta(microseconds=1)


class ElectionStatus(enum.StrEnum):
    """Coarse-grained election phase."""

    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"


class ElectionWindow(Protocol):
    """Anything exposing an election's status and voting window."""

    status: str
    start_datetime: datetime
    end_datetime: datetime


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes for timezone-aware columns; those are
    stored in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def has_started(election: ElectionWindow, now: datetime) -> bool:
    return as_utc(now) >= as_utc(election.start_datetime)


def has_ended(election: ElectionWindow, now: datetime) -> bool:
    """True once ``now`` reaches the end of the window, whatever the stored status."""
    return as_utc(now) >= as_utc(election.end_datetime)


def is_open(election: ElectionWindow) -> bool:
    return election.status == ElectionStatus.OPEN


def is_closed(election: ElectionWindow) -> bool:
    return election.status == ElectionStatus.CLOSED


def is_accepting_votes(election: ElectionWindow, now: datetime) -> bool:
    return is_open(election) and not has_ended(election, now)


def validate_window(start: datetime, end: datetime) -> None:
    """Reject a schedule whose end is not strictly after its start."""
    if as_utc(end) <= as_utc(start):
        msg = "Election end time must be after start time."
        raise BallotValidationError(msg)


def fill_problem(positions: Sequence[BallotPosition]) -> str | None:
    """Return why the ballot cannot be opened, or None when every slot can be filled.

    A position is fillable when it has at least ``max_votes_allowed``
    candidates.  Positions are checked in display order.
    """
    if not positions:
        return "Election cannot be opened because no positions are configured."

    for position in positions:
        required = int(position.max_votes_allowed)
        if position.candidate_count < required:
            slot_label = "slot is" if required == 1 else "slots are"
            candidate_label = "candidate" if required == 1 else "candidates"
            return (
                f"{position.title} position {slot_label} not filled "
                f"({position.candidate_count}/{required} {candidate_label})."
            )
    return None


def plan_update(
    election: ElectionWindow,
    changes: Mapping[str, Any],
    positions: Sequence[BallotPosition],
    now: datetime,
    *,
    can_override_schedule: bool = False,
) -> dict[str, Any]:
    """Validate a partial election update and return the values to persist.

    Args:
        election: The election as currently stored.
        changes: Supplied fields among title, description, start_datetime,
            end_datetime and status.
        positions: The election's ballot, used when opening.
        now: Current time.
        can_override_schedule: Whether the actor may open before the start time.

    Returns:
        Field values to assign.  Closing sets ``end_datetime`` to ``now``.

    Raises:
        ElectionStateError: If the transition or edit is not allowed.
        BallotValidationError: If the resulting schedule is malformed.
    """
    now = as_utc(now)
    current = ElectionStatus(election.status)
    if current is ElectionStatus.CLOSED:
        msg = "Closed elections are locked and cannot be modified."
        raise ElectionStateError(msg)

    updates = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}
    for key in ("title", "start_datetime", "end_datetime", "status"):
        if updates.get(key, ...) is None:
            del updates[key]

    target = ElectionStatus(updates.get("status", current))
    if current is ElectionStatus.OPEN and target is ElectionStatus.DRAFT:
        msg = "Election status cannot move from open back to draft."
        raise ElectionStateError(msg)
    if current is ElectionStatus.DRAFT and target is ElectionStatus.CLOSED:
        msg = "Only open elections can be closed."
        raise ElectionStateError(msg)

    start = as_utc(updates.get("start_datetime", election.start_datetime))
    end = as_utc(updates.get("end_datetime", election.end_datetime))

    if target is ElectionStatus.OPEN and current is not ElectionStatus.OPEN:
        if not can_override_schedule and now < start:
            msg = "Election cannot be opened before its start time."
            raise ElectionStateError(msg)
        if now >= end:
            msg = "Election has expired and cannot be opened."
            raise ElectionStateError(msg)
        problem = fill_problem(positions)
        if problem is not None:
            raise ElectionStateError(problem)

    if "start_datetime" in updates or "end_datetime" in updates:
        validate_window(start, end)
        if target is ElectionStatus.OPEN and not can_override_schedule and now < start:
            msg = "Election cannot be open before its start time."
            raise ElectionStateError(msg)
        if target is ElectionStatus.OPEN and now >= end:
            msg = "Election cannot remain open past its end time."
            raise ElectionStateError(msg)

    if target is ElectionStatus.CLOSED and current is ElectionStatus.OPEN:
        # The window ends at the moment of closing and must stay non-empty.
        updates["end_datetime"] = now
        updates["start_datetime"] = min(start, now - _CLOSE_MARGIN)

    if "status" in updates:
        updates["status"] = target.value
    return updates


def check_deletable(election: ElectionWindow, *, has_votes: bool, can_delete_closed: bool) -> None:
    """Raise unless the election may be deleted.

    Drafts may be deleted; closed elections only by a privileged actor; open
    elections never.  An election holding votes is never deleted because
    votes are immutable.
    """
    status = ElectionStatus(election.status)
    if status is ElectionStatus.OPEN:
        msg = "Only draft elections can be deleted."
        raise ElectionStateError(msg)
    if status is ElectionStatus.CLOSED and not can_delete_closed:
        msg = "Only super admins can delete closed elections."
        raise ElectionStateError(msg)
    if has_votes:
        msg = "Election with votes cannot be deleted."
        raise ElectionStateError(msg)


def check_ballot_editable(election: ElectionWindow, action: str) -> None:
    """Reject ballot schema edits (positions, candidates) on a closed election.

    Args:
        election: The election being edited.
        action: Wording for the message, e.g. ``"add positions to"``.
    """
    if is_closed(election):
        msg = f"Cannot {action} a closed election."
        raise ElectionStateError(msg)
