"""Voting domain models - ballot state and statistics."""

from app.models.voting.entities import BallotReceipt, BallotState, BallotStatus, VoteStatistics

__all__ = [
    "BallotStatus",
    "BallotState",
    "BallotReceipt",
    "VoteStatistics",
]
