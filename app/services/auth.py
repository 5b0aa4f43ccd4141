"""Auth service - admin session management."""

from loguru import logger

from app.services.base import as_result, invalid
from ballot_client.auth import AuthClient, AuthEvent, SessionSchema, UserSchema


class AuthService:
    """Tracks the signed-in administrator."""

    def __init__(self, client: AuthClient):
        self._client = client
        self._user: UserSchema | None = None
        self._unsubscribe = None

    def init(self) -> None:
        """Load the current session and follow session changes."""
        if self._unsubscribe is not None:
            return
        session = self._client.get_session()
        self._user = session.user if session else None
        self._unsubscribe = self._client.on_auth_state_change(self._on_change)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, event: AuthEvent, session: SessionSchema | None) -> None:
        self._user = session.user if session else None
        if event is AuthEvent.SIGNED_OUT:
            logger.info("Admin session ended")

    @as_result("Sign in")
    async def sign_in(self, email: str, password: str) -> UserSchema:
        if not email or not password:
            raise invalid("Email and password are required")
        session = await self._client.sign_in(email, password)
        return session.user

    @as_result("Sign out")
    async def sign_out(self) -> None:
        await self._client.sign_out()

    def is_authenticated(self) -> bool:
        return self._user is not None

    def current_user(self) -> UserSchema | None:
        return self._user
