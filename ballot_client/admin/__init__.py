"""Admin API client."""

from ballot_client.admin.client import CANDIDATE_FIELDS, AdminClient

__all__ = [
    "AdminClient",
    "CANDIDATE_FIELDS",
]
