"""Auth API client."""

from ballot_client.auth.client import AuthClient
from ballot_client.session import AuthEvent, SessionSchema, SessionStore, UserSchema

__all__ = [
    "AuthClient",
    "AuthEvent",
    "SessionSchema",
    "SessionStore",
    "UserSchema",
]
