"""Voter and vote schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ballot_client.core.schemas import RowId


class VoterSchema(BaseModel):
    """Voter registered under a device fingerprint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: RowId
    election_id: RowId | None = None
    fingerprint: str
    created_at: datetime | None = None


class VoteSchema(BaseModel):
    """Single vote for a candidate."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: RowId
    voter_id: RowId
    candidate_id: RowId
    election_id: RowId | None = None
    position: str | None = None
    created_at: datetime | None = None
