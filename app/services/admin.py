"""Admin service - election, candidate and results management."""

from datetime import date
from pathlib import Path

import polars as pl
from loguru import logger

from app.models.voting import VoteStatistics
from app.services.base import as_result, group_by_position, invalid, not_found
from ballot_client.admin import CANDIDATE_FIELDS, AdminClient
from ballot_client.core import CandidateSchema, CoreClient, ElectionResultSchema, ElectionSchema, RowId
from ballot_client.realtime import Subscription, VoteCallback, VoteFeed

CSV_COLUMNS = ["Position", "Candidate Name", "Total Votes", "Percentage"]


def results_to_csv(results: list[ElectionResultSchema]) -> str:
    """Results as CSV text, every cell quoted."""
    df = pl.DataFrame(
        {
            "Position": [r.position for r in results],
            "Candidate Name": [r.candidate_name for r in results],
            "Total Votes": [str(r.total_votes) for r in results],
            "Percentage": [f"{r.vote_percentage or 0:g}%" for r in results],
        },
        schema={c: pl.Utf8 for c in CSV_COLUMNS},
    )
    return df.write_csv(quote_style="always")


def results_filename(title: str, day: date | None = None) -> str:
    """<title>_results_<YYYY-MM-DD>.csv"""
    safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in title.strip()) or "election"
    return f"{safe}_results_{(day or date.today()).isoformat()}.csv"


class AdminService:
    """Administrator operations. Writes need a signed-in session."""

    def __init__(self, core: CoreClient, admin: AdminClient, feed: VoteFeed):
        self._core = core
        self._admin = admin
        self._feed = feed

    # ========== Candidates ==========

    @as_result("Create candidate")
    async def create_candidate(self, election_id: RowId, data: dict) -> CandidateSchema:
        if not (data.get("name") or "").strip() or not (data.get("position") or "").strip():
            raise invalid("Candidate name and position are required")
        candidate = await self._admin.create_candidate(election_id, data)
        logger.info("Candidate created: {} for {}", candidate.name, candidate.position)
        return candidate

    @as_result("Update candidate")
    async def update_candidate(self, candidate_id: RowId, updates: dict) -> CandidateSchema:
        values = {k: v for k, v in updates.items() if k in CANDIDATE_FIELDS}
        if not values:
            raise invalid("Nothing to update")
        for required in ("name", "position"):
            if required in values and not (values[required] or "").strip():
                raise invalid(f"Candidate {required} cannot be empty")
        candidate = await self._admin.update_candidate(candidate_id, values)
        if candidate is None:
            raise not_found("Candidate")
        return candidate

    @as_result("Delete candidate")
    async def delete_candidate(self, candidate_id: RowId) -> None:
        """Delete a candidate; refused while the election's session is open."""
        candidate = await self._core.candidate(candidate_id)
        if candidate is None:
            raise not_found("Candidate")
        election = await self._core.election(candidate.election_id)
        if election is not None and election.is_open:
            raise invalid("Cannot delete candidates while voting is open")
        if not await self._admin.delete_candidate(candidate_id):
            raise not_found("Candidate")
        logger.info("Candidate deleted: {}", candidate_id)

    @as_result("Fetch candidates")
    async def candidates_by_election(self, election_id: RowId) -> list[CandidateSchema]:
        return await self._core.candidates(election_id)

    @as_result("Fetch candidates by position")
    async def candidates_by_position(self, election_id: RowId) -> dict[str, list[CandidateSchema]]:
        return group_by_position(await self._core.candidates(election_id))

    # ========== Elections ==========

    @as_result("Toggle election status")
    async def toggle_election_status(self, election_id: RowId, is_open: bool) -> ElectionSchema:
        election = await self._admin.set_election_open(election_id, is_open)
        if election is None:
            raise not_found("Election")
        logger.info("Election {} {}", election_id, "opened" if is_open else "closed")
        return election

    @as_result("Fetch election status")
    async def election_status(self, election_id: RowId) -> ElectionSchema:
        election = await self._core.election(election_id)
        if election is None:
            raise not_found("Election")
        return election

    @as_result("Fetch elections")
    async def all_elections(self) -> list[ElectionSchema]:
        return await self._core.elections()

    @as_result("Create election")
    async def create_election(self, title: str, description: str | None = None) -> ElectionSchema:
        if not (title or "").strip():
            raise invalid("Election title is required")
        return await self._admin.create_election(title.strip(), description)

    @as_result("Delete election")
    async def delete_election(self, election_id: RowId) -> None:
        """Delete an election with its candidates, voters and votes."""
        if not await self._admin.delete_election(election_id):
            raise not_found("Election")
        logger.info("Election deleted: {}", election_id)

    # ========== Results ==========

    @as_result("Fetch election results")
    async def election_results(self, election_id: RowId) -> list[ElectionResultSchema]:
        return await self._core.results(election_id)

    @as_result("Fetch results by position")
    async def results_by_position(self, election_id: RowId) -> dict[str, list[ElectionResultSchema]]:
        return group_by_position(await self._core.results(election_id))

    @as_result("Fetch vote statistics")
    async def vote_statistics(self, election_id: RowId) -> VoteStatistics:
        results = await self._core.results(election_id)
        voters = await self._core.voter_count(election_id)
        return VoteStatistics(total_votes=sum(r.total_votes for r in results), unique_voters=voters)

    @as_result("Export results")
    async def export_results_csv(self, election_id: RowId) -> str:
        return results_to_csv(await self._core.results(election_id))

    @as_result("Save results")
    async def save_results_csv(self, election_id: RowId, directory: Path | str = ".") -> Path:
        """Write the results CSV as <title>_results_<date>.csv; returns the path."""
        election = await self._core.election(election_id)
        if election is None:
            raise not_found("Election")
        path = Path(directory) / results_filename(election.title)
        path.write_text(results_to_csv(await self._core.results(election_id)), encoding="utf-8")
        logger.info("Results exported: {}", path)
        return path

    # ========== Live votes ==========

    async def subscribe_to_votes(self, election_id: RowId, callback: VoteCallback) -> Subscription:
        """Callback once per vote inserted after subscribing. Release with unsubscribe()."""
        return await self._feed.subscribe(election_id, callback)

    async def unsubscribe(self, subscription: Subscription | None) -> None:
        if subscription is not None:
            await self._feed.unsubscribe(subscription)
