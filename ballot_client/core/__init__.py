"""Election read API client."""

from ballot_client.core.client import CoreClient
from ballot_client.core.schemas import (
    CandidateSchema,
    ElectionResultSchema,
    ElectionSchema,
    RowId,
)

__all__ = [
    "CoreClient",
    "ElectionSchema",
    "CandidateSchema",
    "ElectionResultSchema",
    "RowId",
]
