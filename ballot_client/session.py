"""Auth session schemas and the session state shared by one context's clients."""

from collections.abc import Callable
from enum import StrEnum

from loguru import logger
from pydantic import BaseModel, ConfigDict


class AuthEvent(StrEnum):
    """Session state change events."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class UserSchema(BaseModel):
    """Authenticated user."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: str | None = None
    role: str | None = None


class SessionSchema(BaseModel):
    """Token grant returned by sign-in."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    user: UserSchema


Listener = Callable[[AuthEvent, SessionSchema | None], None]


class SessionStore:
    """Holds the current session and notifies listeners on change."""

    def __init__(self):
        self._session: SessionSchema | None = None
        self._listeners: list[Listener] = []

    @property
    def session(self) -> SessionSchema | None:
        return self._session

    @property
    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    def set(self, event: AuthEvent, session: SessionSchema | None) -> None:
        """Replace the session and emit `event` to listeners."""
        self._session = session
        logger.debug("Auth event: {}", event)
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception as e:
                logger.warning("Auth listener failed: {}", e)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear(self) -> None:
        self._session = None
        self._listeners.clear()
