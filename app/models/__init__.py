"""Models package - results and entities for all domains."""

from app.models.common import BaseEntity, Err, Ok, Result, dump
from app.models.voting import BallotReceipt, BallotState, BallotStatus, VoteStatistics

__all__ = [
    # Common
    "BaseEntity",
    "dump",
    "Ok",
    "Err",
    "Result",
    # Voting
    "BallotStatus",
    "BallotState",
    "BallotReceipt",
    "VoteStatistics",
]
