"""Admin API client - election and candidate writes."""

from loguru import logger

from ballot_client.base import BaseClient, eq, optional_row, single_row
from ballot_client.core.schemas import CandidateSchema, ElectionSchema, RowId

CANDIDATE_FIELDS = ("name", "position", "description", "image_url")


class AdminClient(BaseClient):
    """Client for administrator writes. Requires a signed-in session."""

    async def create_election(self, title: str, description: str | None = None) -> ElectionSchema:
        """POST /rest/v1/elections - new elections start closed."""
        rows = await self._insert(
            "elections",
            {"title": title, "description": description or None, "is_open": False},
        )
        election = single_row(ElectionSchema, rows)
        logger.info("Election created: {} ({})", election.title, election.id)
        return election

    async def set_election_open(self, election_id: RowId, is_open: bool) -> ElectionSchema | None:
        """PATCH /rest/v1/elections?id=eq.{id} {is_open}"""
        rows = await self._update("elections", {"is_open": is_open}, eq("id", election_id))
        return optional_row(ElectionSchema, rows)

    async def delete_election(self, election_id: RowId) -> bool:
        """DELETE /rest/v1/elections?id=eq.{id} - cascades to voters, candidates, votes."""
        rows = await self._delete("elections", eq("id", election_id))
        return bool(rows)

    async def create_candidate(self, election_id: RowId, data: dict) -> CandidateSchema:
        """POST /rest/v1/candidates"""
        row = {"election_id": election_id}
        row.update({k: data.get(k) or None for k in CANDIDATE_FIELDS})
        rows = await self._insert("candidates", row)
        return single_row(CandidateSchema, rows)

    async def update_candidate(self, candidate_id: RowId, updates: dict) -> CandidateSchema | None:
        """PATCH /rest/v1/candidates?id=eq.{id}"""
        values = {k: v for k, v in updates.items() if k in CANDIDATE_FIELDS}
        rows = await self._update("candidates", values, eq("id", candidate_id))
        return optional_row(CandidateSchema, rows)

    async def delete_candidate(self, candidate_id: RowId) -> bool:
        """DELETE /rest/v1/candidates?id=eq.{id}"""
        rows = await self._delete("candidates", eq("id", candidate_id))
        return bool(rows)
