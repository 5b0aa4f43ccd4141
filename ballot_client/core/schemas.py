"""Election, candidate and result schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

RowId = int | str


class ElectionSchema(BaseModel):
    """Election with its voting session flag."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: RowId
    title: str
    description: str | None = None
    is_open: bool = False
    created_at: datetime | None = None


class CandidateSchema(BaseModel):
    """Candidate standing for a position in an election."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: RowId
    election_id: RowId
    name: str
    position: str
    description: str | None = None
    image_url: str | None = None
    created_at: datetime | None = None


class ElectionResultSchema(BaseModel):
    """Row of the election_results aggregate."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    election_id: RowId
    candidate_id: RowId
    candidate_name: str
    position: str
    total_votes: int = 0
    vote_percentage: float = 0.0
