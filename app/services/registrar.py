"""Voter registrar - one voter per (election, fingerprint)."""

from loguru import logger

from app.services.base import as_result, invalid
from ballot_client.core import RowId
from ballot_client.errors import ApiError, ErrorKind, is_not_found
from ballot_client.voting import VoterSchema, VotingClient


class VoterRegistrar:
    """Idempotent get-or-create of voters.

    The store's unique (election_id, fingerprint) constraint is the only guard
    against duplicates: a concurrent insert for the same pair is answered with
    409, after which the existing row is read back and returned.
    """

    def __init__(self, client: VotingClient):
        self._client = client

    async def find_voter(self, election_id: RowId, fingerprint: str) -> VoterSchema | None:
        """Existing voter, or None. The store's "no rows" answer is not an error."""
        try:
            return await self._client.find_voter(election_id, fingerprint)
        except ApiError as e:
            if is_not_found(e):
                return None
            raise

    async def ensure_voter(self, election_id: RowId, fingerprint: str) -> VoterSchema:
        """Return the voter for this pair, creating it on first use."""
        if not fingerprint:
            raise invalid("Missing device fingerprint")
        if election_id is None or election_id == "":
            raise invalid("Missing election")

        voter = await self.find_voter(election_id, fingerprint)
        if voter is not None:
            logger.debug("Voter exists: {} (election {})", voter.id, election_id)
            return voter

        try:
            voter = await self._client.create_voter(election_id, fingerprint)
            logger.info("Voter registered: {} (election {})", voter.id, election_id)
            return voter
        except ApiError as e:
            if e.status != 409:
                raise
            logger.info("Concurrent registration for election {}, reading back", election_id)

        voter = await self.find_voter(election_id, fingerprint)
        if voter is None:
            raise ApiError(ErrorKind.UNKNOWN_ERROR, "Voter registration conflict could not be resolved", 409)
        return voter

    @as_result("Register voter")
    async def register(self, election_id: RowId, fingerprint: str) -> VoterSchema:
        """ensure_voter as a Result."""
        return await self.ensure_voter(election_id, fingerprint)

