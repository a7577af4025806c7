"""Business error taxonomy for the voting engine.

Every error carries a human-readable message that is safe to show to the
caller.  The HTTP layer maps each class to a status code.
"""


class BallotError(Exception):
    """Base class for recoverable voting-engine errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BallotValidationError(BallotError):
    """A submission or ballot edit violates a ballot rule."""


class ElectionStateError(BallotError):
    """The election's lifecycle state does not permit the operation."""


class VoteConflictError(BallotError):
    """The voter has already voted, or a concurrent write collided."""


class ElectionNotFoundError(BallotError):
    """The election, position or candidate does not exist."""


class ActionNotPermittedError(BallotError):
    """The authorization collaborator refused the actor's capability."""

    def __init__(self, message: str = "This action is unauthorized.") -> None:
        super().__init__(message)


class VoteIntegrityError(RuntimeError):
    """Raised when code attempts to update or delete a recorded vote.

    Not a ``BallotError``: reaching this is a programming error, never a
    business outcome of the public submission contract.
    """
