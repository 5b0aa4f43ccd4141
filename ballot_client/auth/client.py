"""Auth API client."""

from collections.abc import Callable

from loguru import logger
from pydantic import ValidationError

from ballot_client.base import BaseClient
from ballot_client.errors import ApiError, ErrorKind
from ballot_client.session import AuthEvent, Listener, SessionSchema, SessionStore

AUTH_PREFIX = "/auth/v1"


class AuthClient(BaseClient):
    """Client for the store's password auth endpoints."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self._session is None:
            self._session = SessionStore()

    async def sign_in(self, email: str, password: str) -> SessionSchema:
        """POST /auth/v1/token?grant_type=password"""
        resp = await self._request(
            "POST",
            f"{AUTH_PREFIX}/token",
            params=[("grant_type", "password")],
            json={"email": email, "password": password},
        )
        try:
            session = SessionSchema.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ApiError(ErrorKind.UNKNOWN_ERROR, "Malformed auth response", resp.status_code) from e
        self._session.set(AuthEvent.SIGNED_IN, session)
        logger.info("Signed in: {}", session.user.email)
        return session

    async def sign_out(self) -> None:
        """POST /auth/v1/logout"""
        try:
            if self._session.session is not None:
                await self._request("POST", f"{AUTH_PREFIX}/logout")
        finally:
            self._session.set(AuthEvent.SIGNED_OUT, None)
            logger.info("Signed out")

    def get_session(self) -> SessionSchema | None:
        """Current session, if signed in."""
        return self._session.session

    def on_auth_state_change(self, callback: Listener) -> Callable[[], None]:
        """Register a session change listener; returns the unsubscribe callable."""
        return self._session.subscribe(callback)
