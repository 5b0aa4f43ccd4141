"""Election read API client."""

from ballot_client.base import BaseClient, eq, optional_row, order, parse_rows
from ballot_client.core.schemas import CandidateSchema, ElectionResultSchema, ElectionSchema, RowId


class CoreClient(BaseClient):
    """Client for election, candidate and result reads."""

    async def elections(self) -> list[ElectionSchema]:
        """GET /rest/v1/elections - newest first."""
        rows = await self._select("elections", order("-created_at"))
        return parse_rows(ElectionSchema, rows)

    async def election(self, election_id: RowId) -> ElectionSchema | None:
        """GET /rest/v1/elections?id=eq.{id}"""
        rows = await self._select("elections", eq("id", election_id), limit=1)
        return optional_row(ElectionSchema, rows)

    async def current_election(self) -> ElectionSchema | None:
        """Most recent election with an open session."""
        rows = await self._select("elections", eq("is_open", True), order("-created_at"), limit=1)
        return optional_row(ElectionSchema, rows)

    async def candidates(self, election_id: RowId) -> list[CandidateSchema]:
        """GET /rest/v1/candidates - ordered by position, then name."""
        rows = await self._select("candidates", eq("election_id", election_id), order("position", "name"))
        return parse_rows(CandidateSchema, rows)

    async def candidate(self, candidate_id: RowId) -> CandidateSchema | None:
        """GET /rest/v1/candidates?id=eq.{id}"""
        rows = await self._select("candidates", eq("id", candidate_id), limit=1)
        return optional_row(CandidateSchema, rows)

    async def results(self, election_id: RowId) -> list[ElectionResultSchema]:
        """GET /rest/v1/election_results - by position, most votes first."""
        rows = await self._select(
            "election_results",
            eq("election_id", election_id),
            order("position", "-total_votes"),
        )
        return parse_rows(ElectionResultSchema, rows)

    async def voter_count(self, election_id: RowId) -> int:
        """Number of registered voters in an election."""
        return await self._count("voters", eq("election_id", election_id))
