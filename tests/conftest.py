"""Shared fixtures: an in-memory store and container factory."""

import pytest

from app.container import Container
from ballot_client.base import ClientConfig
from ballot_client.local import LocalStore

API_KEY = "test-anon-key"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "secret"

CONFIG = ClientConfig(base_url="http://local.store", api_key=API_KEY, timeout=5, max_retries=1, retry_delay=0)


@pytest.fixture
def store():
    s = LocalStore(anon_key=API_KEY, admins={ADMIN_EMAIL: ADMIN_PASSWORD})
    yield s
    s.close()


@pytest.fixture
def make_container(store):
    def factory(**kwargs) -> Container:
        kwargs.setdefault("poll_interval", 0.01)
        return Container(config=CONFIG, transport=store, **kwargs)

    return factory


@pytest.fixture
def seed():
    """Async helper creating an election with candidates; returns (election, {name: candidate})."""

    async def _seed(c: Container, positions: dict[str, list[str]] | None = None, is_open: bool = True):
        positions = positions or {"President": ["Alice", "Bob"], "Treasurer": ["Carol", "Dan"]}
        assert (await c.auth.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)).success
        election = (await c.admin.create_election("Student Council", "Spring term")).data
        candidates = {}
        for position, names in positions.items():
            for name in names:
                result = await c.admin.create_candidate(election.id, {"name": name, "position": position})
                candidates[name] = result.data
        if is_open:
            election = (await c.admin.toggle_election_status(election.id, True)).data
        await c.auth.sign_out()
        return election, candidates

    return _seed
