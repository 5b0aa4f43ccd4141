"""Services package - service class exports."""

from app.services.admin import AdminService
from app.services.auth import AuthService
from app.services.ballot import BallotService
from app.services.registrar import VoterRegistrar
from app.services.submitter import VoteSubmitter

__all__ = [
    "AdminService",
    "AuthService",
    "BallotService",
    "VoterRegistrar",
    "VoteSubmitter",
]
