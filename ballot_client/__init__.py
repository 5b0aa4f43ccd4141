"""Election store client package."""

from ballot_client.admin import AdminClient
from ballot_client.auth import AuthClient
from ballot_client.base import BaseClient, ClientConfig, backoff_delay
from ballot_client.core import CoreClient
from ballot_client.errors import ApiError, ErrorKind, map_status
from ballot_client.local import LocalStore
from ballot_client.realtime import Subscription, VoteFeed
from ballot_client.session import AuthEvent, SessionStore
from ballot_client.voting import VotingClient

__all__ = [
    # Base
    "BaseClient",
    "ClientConfig",
    "backoff_delay",
    # Errors
    "ApiError",
    "ErrorKind",
    "map_status",
    # Clients
    "CoreClient",
    "VotingClient",
    "AdminClient",
    "AuthClient",
    # Session
    "AuthEvent",
    "SessionStore",
    # Live feed
    "VoteFeed",
    "Subscription",
    # Local store
    "LocalStore",
]
