"""Voting API client."""

from datetime import datetime

from ballot_client.base import BaseClient, eq, gte, optional_row, order, parse_rows, single_row
from ballot_client.core.schemas import RowId
from ballot_client.voting.schemas import VoterSchema, VoteSchema


class VotingClient(BaseClient):
    """Client for voter registration and vote insertion."""

    async def find_voter(self, election_id: RowId, fingerprint: str) -> VoterSchema | None:
        """GET /rest/v1/voters?election_id=eq.{e}&fingerprint=eq.{f}"""
        rows = await self._select(
            "voters",
            eq("election_id", election_id),
            eq("fingerprint", fingerprint),
            limit=1,
        )
        return optional_row(VoterSchema, rows)

    async def create_voter(self, election_id: RowId, fingerprint: str) -> VoterSchema:
        """POST /rest/v1/voters"""
        rows = await self._insert("voters", {"election_id": election_id, "fingerprint": fingerprint})
        return single_row(VoterSchema, rows)

    async def insert_votes(self, votes: list[dict]) -> list[VoteSchema]:
        """POST /rest/v1/votes - one request, all rows or none."""
        rows = await self._insert("votes", votes)
        return parse_rows(VoteSchema, rows)

    async def votes_since(self, election_id: RowId, since: datetime | None) -> list[VoteSchema]:
        """Votes of an election created at or after `since`, oldest first."""
        filters = [eq("election_id", election_id)]
        if since is not None:
            filters.append(gte("created_at", since))
        rows = await self._select("votes", *filters, order("created_at", "id"))
        return parse_rows(VoteSchema, rows)

    async def votes_of(self, voter_id: RowId) -> list[VoteSchema]:
        """GET /rest/v1/votes?voter_id=eq.{id}"""
        rows = await self._select("votes", eq("voter_id", voter_id), order("position"))
        return parse_rows(VoteSchema, rows)
