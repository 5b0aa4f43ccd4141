"""Tests for the container lifecycle and CLI helpers."""

import asyncio
import re

import settings
from app.container import LOCAL_BASE_URL, Container, default_config
from app.fingerprint import DeviceEnvironment, Navigator, host_environment
from ballot import parse_selections
from ballot_client.local import LocalStore


class TestContainer:
    def test_mock_mode_owns_local_store(self, monkeypatch):
        monkeypatch.setattr(settings, "MOCK_MODE", True)
        monkeypatch.setattr(settings, "LOCAL_DB_PATH", ":memory:")

        async def scenario():
            async with Container(poll_interval=0.01) as c:
                elections = await c.admin.all_elections()
                return c.config.base_url, isinstance(c.transport, LocalStore), elections

        base_url, local, elections = asyncio.run(scenario())
        assert base_url == LOCAL_BASE_URL
        assert local
        assert elections.data == []

    def test_hosted_config(self, monkeypatch):
        monkeypatch.setattr(settings, "MOCK_MODE", False)
        monkeypatch.setattr(settings, "BALLOT_URL", "https://ballot.example.org")
        monkeypatch.setattr(settings, "BALLOT_ANON_KEY", "anon")
        config = default_config()
        assert (config.base_url, config.api_key) == ("https://ballot.example.org", "anon")

    def test_init_is_idempotent(self, make_container):
        async def scenario():
            c = make_container()
            first = await c.init()
            core = c.core
            await c.init()
            same = c.core is core
            await c.close()
            await c.close()
            return first is c, same

        assert asyncio.run(scenario()) == (True, True)

    def test_fingerprint_of_given_environment(self, make_container):
        env = DeviceEnvironment(navigator=Navigator(user_agent="UA1"))
        c = make_container()
        assert c.fingerprint(env) == c.fingerprint(env)
        assert re.match(r"^[0-9a-f]{64}$", c.fingerprint())


class TestHostEnvironment:
    def test_probes_process(self):
        env = host_environment()
        assert env.navigator.user_agent.startswith("python-httpx/")
        assert env.screen is None
        assert env.navigator.hardware_concurrency is None or env.navigator.hardware_concurrency > 0


class TestParseSelections:
    def test_pairs(self):
        assert parse_selections(["President=c1", "Treasurer=c2"]) == {"President": "c1", "Treasurer": "c2"}

    def test_rejects_malformed(self):
        assert parse_selections(["President"]) is None
        assert parse_selections(["=c1"]) is None
