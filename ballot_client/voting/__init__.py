"""Voting API client."""

from ballot_client.voting.client import VotingClient
from ballot_client.voting.schemas import VoterSchema, VoteSchema

__all__ = [
    "VotingClient",
    "VoterSchema",
    "VoteSchema",
]
