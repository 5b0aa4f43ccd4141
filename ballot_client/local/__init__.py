"""Local store - in-process stand-in for the hosted store."""

from ballot_client.local.store import LocalStore, StoreError

__all__ = [
    "LocalStore",
    "StoreError",
]
