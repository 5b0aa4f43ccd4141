"""Voting domain entities - ballot state, receipts and statistics."""

from dataclasses import dataclass, field
from enum import StrEnum

from app.models.common import BaseEntity
from ballot_client.core import CandidateSchema, ElectionSchema
from ballot_client.voting import VoterSchema, VoteSchema


class BallotStatus(StrEnum):
    """What the voter should be shown."""

    CLOSED = "closed"
    VOTED = "voted"
    OPEN = "open"


@dataclass
class BallotState(BaseEntity):
    """Voter-side view of the current election."""

    status: BallotStatus
    election: ElectionSchema | None = None
    voter: VoterSchema | None = None
    candidates: dict[str, list[CandidateSchema]] = field(default_factory=dict)


@dataclass
class BallotReceipt(BaseEntity):
    """Outcome of casting a ballot."""

    voter: VoterSchema
    votes: list[VoteSchema]


@dataclass
class VoteStatistics(BaseEntity):
    """Vote totals for an election."""

    total_votes: int
    unique_voters: int
