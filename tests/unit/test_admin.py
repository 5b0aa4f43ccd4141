"""Tests for administrator operations, auth and the live vote feed."""

import asyncio
from datetime import date

import httpx
import pytest

from app.services.admin import results_filename, results_to_csv
from ballot_client.auth import AuthClient
from ballot_client.base import ClientConfig
from ballot_client.core import ElectionResultSchema
from ballot_client.errors import ApiError, ErrorKind
from ballot_client.session import AuthEvent

ADMIN = ("admin@example.com", "secret")


async def cast(c, fingerprint, *candidates):
    result = await c.ballot.cast(fingerprint, {x.position: x.id for x in candidates})
    assert result.success, result
    return result.data


class TestResultsCsv:
    def test_quoted_rows(self):
        rows = [
            ElectionResultSchema(
                election_id="e1", candidate_id="c1", candidate_name="Alice", position="President",
                total_votes=2, vote_percentage=66.67,
            ),
            ElectionResultSchema(
                election_id="e1", candidate_id="c2", candidate_name="Bob", position="President",
                total_votes=1, vote_percentage=33.33,
            ),
        ]
        lines = results_to_csv(rows).splitlines()
        assert '"Candidate Name"' in lines[0]
        assert lines[1] == '"President","Alice","2","66.67%"'
        assert lines[2] == '"President","Bob","1","33.33%"'

    def test_whole_percentages(self):
        row = ElectionResultSchema(
            election_id="e1", candidate_id="c1", candidate_name="Carol", position="Treasurer",
            total_votes=1, vote_percentage=100.0,
        )
        assert results_to_csv([row]).splitlines()[1].endswith('"100%"')

    def test_filename(self):
        assert results_filename("Student Council", date(2026, 5, 1)) == "Student_Council_results_2026-05-01.csv"
        assert results_filename("  ", date(2026, 5, 1)) == "election_results_2026-05-01.csv"


class TestAdminService:
    def test_writes_require_sign_in(self, make_container):
        async def scenario():
            async with make_container() as c:
                return await c.admin.create_election("Anonymous")

        result = asyncio.run(scenario())
        assert not result.success
        assert result.status == 401

    def test_create_candidate_validation(self, make_container, seed):
        async def scenario():
            async with make_container() as c:
                election, _ = await seed(c)
                await c.auth.sign_in(*ADMIN)
                return await c.admin.create_candidate(election.id, {"name": " ", "position": "President"})

        assert asyncio.run(scenario()).kind is ErrorKind.INVALID_DATA

    def test_update_candidate(self, make_container, seed):
        async def scenario():
            async with make_container() as c:
                _, candidates = await seed(c)
                await c.auth.sign_in(*ADMIN)
                updated = await c.admin.update_candidate(
                    candidates["Alice"].id, {"description": "Economics, year 3", "id": "ignored"}
                )
                missing = await c.admin.update_candidate("no-such-candidate", {"name": "X"})
                return updated, missing

        updated, missing = asyncio.run(scenario())
        assert updated.data.description == "Economics, year 3"
        assert updated.data.name == "Alice"
        assert missing.status == 404

    def test_delete_candidate_refused_while_open(self, make_container, seed):
        async def scenario():
            async with make_container() as c:
                election, candidates = await seed(c)
                await c.auth.sign_in(*ADMIN)
                refused = await c.admin.delete_candidate(candidates["Bob"].id)
                await c.admin.toggle_election_status(election.id, False)
                deleted = await c.admin.delete_candidate(candidates["Bob"].id)
                remaining = await c.admin.candidates_by_election(election.id)
                return refused, deleted, remaining

        refused, deleted, remaining = asyncio.run(scenario())
        assert refused.kind is ErrorKind.INVALID_DATA
        assert deleted.success
        assert "Bob" not in [x.name for x in remaining.data]

    def test_store_refuses_candidate_delete_while_open(self, make_container, seed):
        async def scenario():
            async with make_container() as c:
                _, candidates = await seed(c)
                await c.auth.sign_in(*ADMIN)
                try:
                    await c.admin_client.delete_candidate(candidates["Bob"].id)
                except ApiError as e:
                    return e

        assert asyncio.run(scenario()).kind is ErrorKind.INVALID_DATA

    def test_toggle_and_status(self, make_container, seed):
        async def scenario():
            async with make_container() as c:
                election, _ = await seed(c, is_open=False)
                await c.auth.sign_in(*ADMIN)
                opened = await c.admin.toggle_election_status(election.id, True)
                status = await c.admin.election_status(election.id)
                missing = await c.admin.toggle_election_status("no-such-election", True)
                return opened, status, missing

        opened, status, missing = asyncio.run(scenario())
        assert opened.data.is_open
        assert status.data.is_open
        assert missing.status == 404

    def test_all_elections_newest_first(self, make_container):
        async def scenario():
            async with make_container() as c:
                await c.auth.sign_in(*ADMIN)
                await c.admin.create_election("First")
                await c.admin.create_election("Second")
                return await c.admin.all_elections()

        assert [e.title for e in asyncio.run(scenario()).data] == ["Second", "First"]

    def test_create_election_requires_title(self, make_container):
        async def scenario():
            async with make_container() as c:
                await c.auth.sign_in(*ADMIN)
                return await c.admin.create_election("  ")

        assert asyncio.run(scenario()).kind is ErrorKind.INVALID_DATA

    def test_delete_election_cascades(self, make_container, seed):
        async def scenario():
            async with make_container() as c:
                election, candidates = await seed(c)
                await cast(c, "device-1", candidates["Alice"], candidates["Carol"])
                await c.auth.sign_in(*ADMIN)
                deleted = await c.admin.delete_election(election.id)
                again = await c.admin.delete_election(election.id)
                return (
                    deleted,
                    again,
                    await c.core.candidates(election.id),
                    await c.core.voter_count(election.id),
                    await c.voting.votes_since(election.id, None),
                )

        deleted, again, candidates, voters, votes = asyncio.run(scenario())
        assert deleted.success
        assert again.status == 404
        assert candidates == []
        assert voters == 0
        assert votes == []

    def test_statistics_and_results(self, make_container, seed):
        async def scenario():
            async with make_container() as c:
                election, cand = await seed(c)
                await cast(c, "device-1", cand["Alice"], cand["Carol"])
                await cast(c, "device-2", cand["Alice"], cand["Dan"])
                await cast(c, "device-3", cand["Bob"])
                await c.auth.sign_in(*ADMIN)
                return (
                    await c.admin.vote_statistics(election.id),
                    await c.admin.results_by_position(election.id),
                    await c.admin.export_results_csv(election.id),
                )

        stats, by_position, csv = asyncio.run(scenario())
        assert stats.data.total_votes == 5
        assert stats.data.unique_voters == 3
        president = by_position.data["President"]
        assert [(r.candidate_name, r.total_votes) for r in president] == [("Alice", 2), ("Bob", 1)]
        assert president[0].vote_percentage == 66.67
        assert [r.vote_percentage for r in by_position.data["Treasurer"]] == [50.0, 50.0]
        assert '"President","Alice","2","66.67%"' in csv.data.splitlines()

    def test_save_results_csv(self, make_container, seed, tmp_path):
        async def scenario():
            async with make_container() as c:
                election, cand = await seed(c)
                await cast(c, "device-1", cand["Alice"])
                await c.auth.sign_in(*ADMIN)
                return await c.admin.save_results_csv(election.id, tmp_path)

        path = asyncio.run(scenario()).data
        assert path.parent == tmp_path
        assert path.name.startswith("Student_Council_results_")
        assert '"Alice"' in path.read_text(encoding="utf-8")


class TestAuth:
    def test_sign_in_and_out(self, make_container):
        async def scenario():
            async with make_container() as c:
                before = c.auth.is_authenticated()
                user = await c.auth.sign_in(*ADMIN)
                during = c.auth.is_authenticated()
                await c.auth.sign_out()
                return before, user, during, c.auth.is_authenticated()

        before, user, during, after = asyncio.run(scenario())
        assert not before
        assert user.data.email == "admin@example.com"
        assert during
        assert not after

    def test_wrong_password(self, make_container):
        async def scenario():
            async with make_container() as c:
                return await c.auth.sign_in("admin@example.com", "wrong"), c.auth.current_user()

        result, user = asyncio.run(scenario())
        assert not result.success
        assert result.message == "Invalid login credentials"
        assert user is None

    def test_listeners_receive_events(self, make_container):
        events = []

        async def scenario():
            async with make_container() as c:
                unsubscribe = c.auth_client.on_auth_state_change(lambda event, session: events.append(event))
                await c.auth.sign_in(*ADMIN)
                await c.auth.sign_out()
                unsubscribe()
                await c.auth.sign_in(*ADMIN)

        asyncio.run(scenario())
        assert events == [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT]

    def test_failing_listener_does_not_block_others(self, make_container):
        events = []

        def broken(event, session):
            raise RuntimeError("listener bug")

        async def scenario():
            async with make_container() as c:
                c.auth_client.on_auth_state_change(broken)
                c.auth_client.on_auth_state_change(lambda event, session: events.append(event))
                return await c.auth.sign_in(*ADMIN)

        assert asyncio.run(scenario()).success
        assert events == [AuthEvent.SIGNED_IN]


class TestVoteFeed:
    def test_delivers_each_new_vote_once(self, make_container, seed):
        received = []

        async def scenario():
            async with make_container() as c:
                election, cand = await seed(c)
                await cast(c, "device-0", cand["Bob"])
                sub = await c.feed.subscribe(election.id, received.append, start=False)
                await cast(c, "device-1", cand["Alice"], cand["Carol"])
                first = await sub.poll()
                second = await sub.poll()
                await cast(c, "device-2", cand["Dan"])
                third = await sub.poll()
                return first, second, third

        first, second, third = asyncio.run(scenario())
        assert (first, second, third) == (2, 0, 1)
        assert len({v.id for v in received}) == 3

    def test_background_polling_and_unsubscribe(self, make_container, seed):
        received = []

        async def on_vote(vote):
            received.append(vote)

        async def scenario():
            async with make_container(poll_interval=0.01) as c:
                election, cand = await seed(c)
                sub = await c.admin.subscribe_to_votes(election.id, on_vote)
                await cast(c, "device-1", cand["Alice"])
                for _ in range(100):
                    if received:
                        break
                    await asyncio.sleep(0.01)
                await c.admin.unsubscribe(sub)
                active = sub.active
                await cast(c, "device-2", cand["Bob"])
                await asyncio.sleep(0.05)
                return active

        active = asyncio.run(scenario())
        assert not active
        assert len(received) == 1
        assert received[0].position == "President"

    def test_callback_errors_are_contained(self, make_container, seed):
        def broken(vote):
            raise ValueError("bad callback")

        async def scenario():
            async with make_container() as c:
                election, cand = await seed(c)
                sub = await c.feed.subscribe(election.id, broken, start=False)
                await cast(c, "device-1", cand["Alice"])
                return await sub.poll()

        assert asyncio.run(scenario()) == 1

    def test_close_releases_subscriptions(self, make_container, seed):
        async def scenario():
            c = await make_container().init()
            election, _ = await seed(c)
            sub = await c.admin.subscribe_to_votes(election.id, lambda vote: None)
            running = sub.active
            await c.close()
            return running, sub.active

        assert asyncio.run(scenario()) == (True, False)


class TestAdminReads:
    def test_candidates_by_position(self, make_container, seed):
        async def scenario():
            async with make_container() as c:
                election, _ = await seed(c)
                return await c.admin.candidates_by_position(election.id)

        grouped = asyncio.run(scenario()).data
        assert {k: [x.name for x in v] for k, v in grouped.items()} == {
            "President": ["Alice", "Bob"],
            "Treasurer": ["Carol", "Dan"],
        }

    def test_results_before_any_vote(self, make_container, seed):
        async def scenario():
            async with make_container() as c:
                election, _ = await seed(c)
                return await c.admin.election_results(election.id), await c.admin.vote_statistics(election.id)

        results, stats = asyncio.run(scenario())
        assert len(results.data) == 4
        assert all(r.total_votes == 0 and r.vote_percentage == 0.0 for r in results.data)
        assert (stats.data.total_votes, stats.data.unique_voters) == (0, 0)


class TestSignOutOffline:
    def test_session_cleared_when_logout_fails(self):
        events = []

        def handler(request):
            if request.url.path.endswith("/token"):
                return httpx.Response(
                    200, json={"access_token": "tok-123456789", "user": {"id": "u1", "email": ADMIN[0]}}
                )
            raise httpx.ConnectError("offline", request=request)

        config = ClientConfig(base_url="http://store.test", api_key="k", max_retries=0, retry_delay=0)

        async def scenario():
            async with AuthClient(config, transport=httpx.MockTransport(handler)) as client:
                client.on_auth_state_change(lambda event, session: events.append(event))
                await client.sign_in(*ADMIN)
                with pytest.raises(ApiError) as exc:
                    await client.sign_out()
                return exc.value, client.get_session()

        error, session = asyncio.run(scenario())
        assert error.kind is ErrorKind.NETWORK_ERROR
        assert session is None
        assert events == [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT]
