"""Live vote feed - per-insert callbacks for one election's votes."""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from datetime import datetime

from loguru import logger

from ballot_client.core.schemas import RowId
from ballot_client.errors import ApiError
from ballot_client.voting.client import VotingClient
from ballot_client.voting.schemas import VoteSchema

VoteCallback = Callable[[VoteSchema], Awaitable[None] | None]


class Subscription:
    """Interest in inserts to the votes table for one election."""

    def __init__(self, client: VotingClient, election_id: RowId, callback: VoteCallback, interval: float):
        self.election_id = election_id
        self._client = client
        self._callback = callback
        self._interval = interval
        self._cursor: datetime | None = None
        self._seen: set = set()
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def prime(self) -> None:
        """Mark existing votes as seen so only later inserts are delivered."""
        async with self._lock:
            votes = await self._client.votes_since(self.election_id, None)
            self._advance(votes)
        logger.debug("Feed {}: primed with {} votes", self.election_id, len(self._seen))

    async def poll(self) -> int:
        """Fetch new votes and deliver each once. Returns the number delivered."""
        async with self._lock:
            votes = await self._client.votes_since(self.election_id, self._cursor)
            new = [v for v in votes if v.id not in self._seen]
            self._advance(new)
        for vote in new:
            try:
                result = self._callback(vote)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning("Feed {}: callback failed for vote {}: {}", self.election_id, vote.id, e)
        return len(new)

    def _advance(self, votes: list[VoteSchema]) -> None:
        for v in votes:
            if v.created_at is not None and (self._cursor is None or v.created_at > self._cursor):
                self._cursor = v.created_at
                self._seen = {x.id for x in votes if x.created_at == v.created_at}
            self._seen.add(v.id)

    def start(self) -> None:
        if not self.active:
            self._task = asyncio.create_task(self._run(), name=f"vote-feed-{self.election_id}")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                delivered = await self.poll()
                if delivered:
                    logger.debug("Feed {}: {} new votes", self.election_id, delivered)
            except ApiError as e:
                logger.warning("Feed {}: poll failed: {}", self.election_id, e.message)

    async def unsubscribe(self) -> None:
        """Stop polling. Safe to call more than once."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Feed {}: unsubscribed", self.election_id)


class VoteFeed:
    """Owns vote subscriptions and releases them on close."""

    def __init__(self, client: VotingClient, interval: float = 2.0):
        self._client = client
        self._interval = interval
        self._subscriptions: list[Subscription] = []

    async def subscribe(self, election_id: RowId, callback: VoteCallback, start: bool = True) -> Subscription:
        """Subscribe to new votes of an election."""
        sub = Subscription(self._client, election_id, callback, self._interval)
        await sub.prime()
        if start:
            sub.start()
        self._subscriptions.append(sub)
        logger.info("Subscribed to votes of election {}", election_id)
        return sub

    async def unsubscribe(self, sub: Subscription) -> None:
        await sub.unsubscribe()
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)

    async def close(self) -> None:
        """Release every subscription."""
        for sub in list(self._subscriptions):
            await self.unsubscribe(sub)
