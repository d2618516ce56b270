from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from conftest import InMemoryCollection
from prospect_matcher.models.schemas import CreateProspectRequest
from prospect_matcher.services.records import RecordStore, _ilike
from prospect_matcher.utils.exceptions import DatabaseError


@pytest.fixture
def collections():
    prospects = InMemoryCollection()
    positions = InMemoryCollection()
    evaluations = InMemoryCollection(unique_keys=["prospect_id", "job_position_id"])
    with patch("prospect_matcher.services.records.prospects_coll", prospects), \
         patch("prospect_matcher.services.records.positions_coll", positions), \
         patch("prospect_matcher.services.records.evaluations_coll", evaluations):
        yield prospects, positions, evaluations


def _prospect_doc(pid, minutes_ago=0):
    return {"_id": f"oid-{pid}", "id": pid, "name": pid, "created_at": datetime(2024, 5, 1) - timedelta(minutes=minutes_ago)}


def _position_doc(pid, is_open=True, active=True):
    return {"id": pid, "name": pid, "is_open": is_open, "active": active, "created_at": datetime(2024, 5, 1)}


class TestProspects:

    @pytest.mark.asyncio
    async def test_get_prospects_newest_first(self, collections):
        prospects, _, _ = collections
        prospects.docs.extend([_prospect_doc("old", 30), _prospect_doc("new", 0), _prospect_doc("mid", 10)])

        result = await RecordStore.get_prospects()

        assert [p.id for p in result] == ["new", "mid", "old"]

    @pytest.mark.asyncio
    async def test_get_prospect_by_id(self, collections):
        prospects, _, _ = collections
        prospects.docs.append(_prospect_doc("p-1"))

        assert (await RecordStore.get_prospect_by_id("p-1")).name == "p-1"
        assert await RecordStore.get_prospect_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_create_prospect(self, collections):
        prospects, _, _ = collections
        request = CreateProspectRequest(
            agent_id="agent-1",
            name="Jane Smith",
            email="jane@acme.io",
            linkedin_url="https://www.linkedin.com/in/janesmith",
            profile_text="Python",
        )

        prospect = await RecordStore.create_prospect(request)

        assert prospect.id
        assert prospect.linkedin_url.startswith("https://www.linkedin.com/in/janesmith")
        assert prospects.docs[0]["id"] == prospect.id
        assert prospects.docs[0]["email"] == "jane@acme.io"

    @pytest.mark.asyncio
    async def test_delete_prospect(self, collections):
        prospects, _, _ = collections
        prospects.docs.append(_prospect_doc("p-1"))

        assert await RecordStore.delete_prospect("p-1") is True
        assert await RecordStore.delete_prospect("p-1") is False

    @pytest.mark.asyncio
    async def test_prospects_without_evaluation(self, collections):
        prospects, _, evaluations = collections
        prospects.docs.extend([_prospect_doc("a", 2), _prospect_doc("b", 1), _prospect_doc("c", 0)])
        evaluations.docs.extend([
            {"prospect_id": "b", "job_position_id": "x"},
            {"prospect_id": "c", "job_position_id": "y"},
        ])

        result = await RecordStore.get_prospects_without_evaluation("x")

        assert [p.id for p in result] == ["c", "a"]


class TestPositions:

    @pytest.mark.asyncio
    async def test_only_open_active_positions(self, collections):
        _, positions, _ = collections
        positions.docs.extend([
            _position_doc("open"),
            _position_doc("closed", is_open=False),
            _position_doc("inactive", active=False),
        ])

        result = await RecordStore.get_open_positions()

        assert [p.id for p in result] == ["open"]

    @pytest.mark.asyncio
    async def test_get_and_delete_position(self, collections):
        _, positions, _ = collections
        positions.docs.append(_position_doc("q-1"))

        assert (await RecordStore.get_position_by_id("q-1")).id == "q-1"
        assert await RecordStore.delete_position("q-1") is True
        assert await RecordStore.get_position_by_id("q-1") is None


def test_ilike_escapes_regex_characters():
    query = _ilike("c++ (senior)", ["name", "email"])

    assert query == {"$or": [
        {"name": {"$regex": r"c\+\+\ \(senior\)", "$options": "i"}},
        {"email": {"$regex": r"c\+\+\ \(senior\)", "$options": "i"}},
    ]}


@pytest.mark.asyncio
async def test_driver_failure_becomes_database_error():
    failing = MagicMock()
    failing.find_one.side_effect = ConnectionError("server selection timeout")

    with patch("prospect_matcher.services.records.prospects_coll", failing):
        with pytest.raises(DatabaseError) as exc_info:
            await RecordStore.get_prospect_by_id("p-1")

    assert exc_info.value.details["operation"] == "get_prospect_by_id"
    assert exc_info.value.details["collection"] == "prospect"
