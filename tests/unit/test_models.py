"""Tests for result types and entity conversion."""

from datetime import datetime
from pathlib import Path

from app.models.common import Err, Ok, dump
from app.models.voting import BallotState, BallotStatus, VoteStatistics
from ballot_client.core import ElectionSchema
from ballot_client.errors import ApiError, ErrorKind


class TestOk:
    def test_without_data(self):
        assert Ok().to_dict() == {"success": True}

    def test_with_entity(self):
        result = Ok(VoteStatistics(total_votes=5, unique_voters=3))
        assert result.success
        assert result.to_dict() == {"success": True, "data": {"total_votes": 5, "unique_voters": 3}}

    def test_false_data_kept(self):
        assert Ok(0).to_dict() == {"success": True, "data": 0}


class TestErr:
    def test_shape(self):
        err = Err(ErrorKind.ALREADY_VOTED, "You have already voted", 409)
        assert not err.success
        assert err.to_dict() == {"success": False, "error": "You have already voted", "errorCode": "ALREADY_VOTED"}

    def test_from_api(self):
        err = Err.from_api(ApiError(ErrorKind.RATE_LIMIT, "slow down", 429))
        assert (err.kind, err.message, err.status) == (ErrorKind.RATE_LIMIT, "slow down", 429)


class TestDump:
    def test_nested_schema(self):
        election = ElectionSchema(id="e1", title="Council", is_open=True, created_at=datetime(2026, 5, 1, 12, 0))
        state = BallotState(status=BallotStatus.OPEN, election=election)
        data = state.to_dict()
        assert data["status"] == "open"
        assert data["election"]["created_at"] == "2026-05-01T12:00:00"
        assert data["candidates"] == {}

    def test_path(self):
        assert dump([Path("out") / "a.csv"]) == [str(Path("out") / "a.csv")]
