"""One-way voter tokens.

Votes reference ``voter_hash(voter_id, election_id)`` instead of the voter.
The token is recomputed whenever it is needed; no voter-to-token table exists.
"""

import hashlib

VOTER_HASH_SEPARATOR = "|"
VOTER_HASH_LENGTH = 64


def voter_hash(voter_id: int, election_id: int) -> str:
    """Return the SHA-256 hex token identifying a voter within one election.

    The same voter gets unrelated tokens in different elections.

    Args:
        voter_id: The voter's user id.
        election_id: The election id.

    Returns:
        A 64-character lowercase hex digest.
    """
    payload = f"{voter_id}{VOTER_HASH_SEPARATOR}{election_id}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
