"""Vote submitter - inserts votes; duplicates are rejected by the store."""

from loguru import logger

from app.services.base import as_result, invalid
from ballot_client.core import RowId
from ballot_client.errors import ApiError, ErrorKind
from ballot_client.voting import VoteSchema, VotingClient


class VoteSubmitter:
    """Submits votes without reading prior votes first.

    The store's unique (voter_id, position) constraint decides duplicates and
    answers 409 (ALREADY_VOTED). A vote against a closed session is refused by
    the store as invalid data.
    """

    def __init__(self, client: VotingClient):
        self._client = client

    async def submit_vote(
        self,
        voter_id: RowId,
        candidate_id: RowId,
        election_id: RowId | None = None,
        position: str | None = None,
    ) -> VoteSchema:
        """Insert one vote. Election and position are filled by the store when omitted."""
        if voter_id is None or candidate_id is None:
            raise invalid("Missing voter or candidate")
        row = {"voter_id": voter_id, "candidate_id": candidate_id}
        if election_id is not None:
            row["election_id"] = election_id
        if position is not None:
            row["position"] = position

        votes = await self._insert([row], voter_id)
        if not votes:
            raise ApiError(ErrorKind.UNKNOWN_ERROR, "Vote was not recorded")
        return votes[0]

    async def submit_ballot(
        self,
        voter_id: RowId,
        election_id: RowId,
        selections: dict[str, RowId],
    ) -> list[VoteSchema]:
        """Insert one vote per position in a single request (all or nothing)."""
        if not selections:
            raise invalid("Please select at least one candidate to vote for")
        rows = [
            {
                "voter_id": voter_id,
                "candidate_id": candidate_id,
                "election_id": election_id,
                "position": position,
            }
            for position, candidate_id in selections.items()
        ]
        return await self._insert(rows, voter_id)

    async def _insert(self, rows: list[dict], voter_id: RowId) -> list[VoteSchema]:
        try:
            votes = await self._client.insert_votes(rows)
        except ApiError as e:
            if e.kind is ErrorKind.ALREADY_VOTED:
                logger.info("Duplicate vote rejected for voter {}", voter_id)
            raise
        logger.info("Recorded {} vote(s) for voter {}", len(votes), voter_id)
        return votes

    @as_result("Submit vote")
    async def submit(self, voter_id: RowId, candidate_id: RowId) -> VoteSchema:
        """submit_vote as a Result."""
        return await self.submit_vote(voter_id, candidate_id)
