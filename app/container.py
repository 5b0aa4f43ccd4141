"""Dependency container - one per application run, with explicit init/close."""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

import httpx
from loguru import logger

import settings
from app.fingerprint import DeviceEnvironment, FingerprintHasher, generate_fingerprint, host_environment
from app.services.admin import AdminService
from app.services.auth import AuthService
from app.services.ballot import BallotService
from app.services.registrar import VoterRegistrar
from app.services.submitter import VoteSubmitter
from ballot_client.admin import AdminClient
from ballot_client.auth import AuthClient
from ballot_client.base import ClientConfig
from ballot_client.core import CoreClient
from ballot_client.local import LocalStore
from ballot_client.realtime import VoteFeed
from ballot_client.session import SessionStore
from ballot_client.voting import VotingClient

LOCAL_BASE_URL = "http://local.store"


def default_config() -> ClientConfig:
    """Client config from settings (local store address in mock mode)."""
    if settings.MOCK_MODE:
        base_url, api_key = LOCAL_BASE_URL, settings.LOCAL_ANON_KEY
    else:
        base_url, api_key = settings.BALLOT_URL, settings.BALLOT_ANON_KEY
    return ClientConfig(
        base_url=base_url,
        api_key=api_key,
        timeout=settings.API_TIMEOUT,
        max_retries=settings.MAX_RETRIES,
        retry_delay=settings.RETRY_DELAY,
    )


def local_store() -> LocalStore:
    """Local store with the configured admin account."""
    return LocalStore(
        path=settings.LOCAL_DB_PATH,
        anon_key=settings.LOCAL_ANON_KEY,
        admins={settings.ADMIN_EMAIL: settings.ADMIN_PASSWORD},
    )


class Container:
    """Holds the clients, live feed and services of one run.

    Nothing here is module-level: create a container, `await init()`, use it,
    `await close()` (or use it as an async context manager).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        hasher: FingerprintHasher | None = None,
        poll_interval: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._owns_store = False
        if config is None:
            config = default_config()
            if settings.MOCK_MODE and transport is None:
                transport = local_store()
                self._owns_store = True
        self.config = config
        self.transport = transport
        self.hasher = hasher or FingerprintHasher(settings.FINGERPRINT_ALGORITHM)
        self._poll_interval = settings.POLL_INTERVAL if poll_interval is None else poll_interval
        self._sleep = sleep
        self._stack: contextlib.AsyncExitStack | None = None
        self._initialized = False

    async def init(self) -> "Container":
        """Open clients and build services. Idempotent."""
        if self._initialized:
            return self

        self.session = SessionStore()
        self._stack = contextlib.AsyncExitStack()
        args = (self.config, self.transport, self.session, self._sleep)

        # Clients
        self.core = await self._stack.enter_async_context(CoreClient(*args))
        self.voting = await self._stack.enter_async_context(VotingClient(*args))
        self.admin_client = await self._stack.enter_async_context(AdminClient(*args))
        self.auth_client = await self._stack.enter_async_context(AuthClient(*args))
        self.feed = VoteFeed(self.voting, interval=self._poll_interval)

        # Services
        self.registrar = VoterRegistrar(self.voting)
        self.submitter = VoteSubmitter(self.voting)
        self.ballot = BallotService(self.core, self.voting, self.registrar, self.submitter)
        self.admin = AdminService(self.core, self.admin_client, self.feed)
        self.auth = AuthService(self.auth_client)
        self.auth.init()

        self._initialized = True
        logger.info("Container ready ({})", "local store" if isinstance(self.transport, LocalStore) else self.config.base_url)
        return self

    async def close(self) -> None:
        """Release subscriptions, clients and an owned local store."""
        if not self._initialized:
            return
        await self.feed.close()
        self.auth.close()
        await self._stack.aclose()
        self.session.clear()
        if self._owns_store:
            self.transport.close()
        self._initialized = False
        logger.debug("Container closed")

    async def __aenter__(self) -> "Container":
        return await self.init()

    async def __aexit__(self, *_) -> None:
        await self.close()

    def fingerprint(self, env: DeviceEnvironment | None = None) -> str:
        """Fingerprint of `env`, or of this host when omitted."""
        return generate_fingerprint(env or host_environment(), self.hasher)
