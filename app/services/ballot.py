"""Ballot service - voter-side flow over the current election."""

from loguru import logger

from app.models.voting import BallotReceipt, BallotState, BallotStatus
from app.services.base import as_result, group_by_position, invalid
from app.services.registrar import VoterRegistrar
from app.services.submitter import VoteSubmitter
from ballot_client.core import CoreClient, ElectionSchema, RowId
from ballot_client.voting import VotingClient


class BallotService:
    """Loads the ballot for a device and casts it."""

    def __init__(
        self,
        core: CoreClient,
        voting: VotingClient,
        registrar: VoterRegistrar,
        submitter: VoteSubmitter,
    ):
        self._core = core
        self._voting = voting
        self._registrar = registrar
        self._submitter = submitter

    async def _election(self, election_id: RowId | None) -> ElectionSchema | None:
        if election_id is None:
            return await self._core.current_election()
        return await self._core.election(election_id)

    @as_result("Load ballot")
    async def load(self, fingerprint: str, election_id: RowId | None = None) -> BallotState:
        """Current state for this device: closed, already voted, or open with candidates."""
        election = await self._election(election_id)
        if election is None or not election.is_open:
            return BallotState(status=BallotStatus.CLOSED, election=election)

        voter = await self._registrar.find_voter(election.id, fingerprint)
        if voter is not None and await self._voting.votes_of(voter.id):
            return BallotState(status=BallotStatus.VOTED, election=election, voter=voter)

        candidates = await self._core.candidates(election.id)
        logger.debug("Ballot for election {}: {} candidates", election.id, len(candidates))
        return BallotState(
            status=BallotStatus.OPEN,
            election=election,
            voter=voter,
            candidates=group_by_position(candidates),
        )

    @as_result("Cast ballot")
    async def cast(
        self,
        fingerprint: str,
        selections: dict[str, RowId],
        election_id: RowId | None = None,
    ) -> BallotReceipt:
        """Register the device as a voter and submit one vote per selected position."""
        if not selections:
            raise invalid("Please select at least one candidate to vote for")

        # Opportunistic; the store has the final say on openness.
        election = await self._election(election_id)
        if election is None or not election.is_open:
            raise invalid("Voting is closed")

        voter = await self._registrar.ensure_voter(election.id, fingerprint)
        votes = await self._submitter.submit_ballot(voter.id, election.id, selections)
        return BallotReceipt(voter=voter, votes=votes)

    @as_result("Load results")
    async def results(self, election_id: RowId) -> dict[str, list]:
        """Results by position, available once the session is closed."""
        election = await self._core.election(election_id)
        if election is None:
            raise invalid("Unknown election")
        if election.is_open:
            raise invalid("Results will be available after the voting period ends")
        return group_by_position(await self._core.results(election_id))
