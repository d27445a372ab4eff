"""
Scavenger Hunt Backend - Waypoint Service Tests
================================================

What:  WaypointService against a real SQLite database.

What we test:
    ✅ create → get returns the submitted waypoints
    ✅ delete then re-create under the same name; history has both, newest first
    ✅ update requires the body name to match the path name
    ✅ an invalid entry aborts the write, nothing is stored
    ✅ summary and list filters
"""

import pytest

from scavenger.exceptions import ConflictError, NotFoundError, ValidationError
from scavenger.services.waypoint_service import WaypointService


class TestWaypointService:
    def setup_method(self):
        self.service = WaypointService()

    @pytest.mark.asyncio
    async def test_create_round_trip(self, db_session, sequence_payload):
        created = await self.service.create(db_session, sequence_payload)
        fetched = await self.service.get(db_session, "TOUR")

        assert fetched.waypoints_id == created.waypoints_id
        assert fetched.waypoint_name == "tour"
        assert fetched.waypoint_description == "Downtown walking tour"
        assert fetched.data == sequence_payload["data"]

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, db_session, sequence_payload):
        await self.service.create(db_session, sequence_payload)
        with pytest.raises(ConflictError, match="waypoint sequence already exists"):
            await self.service.create(db_session, dict(sequence_payload, waypoint_name="Tour"))

    @pytest.mark.asyncio
    async def test_delete_recreate_history(self, db_session, sequence_payload, waypoint_entry):
        first = await self.service.create(db_session, sequence_payload)
        await self.service.delete(db_session, "tour")

        replacement = dict(
            sequence_payload,
            waypoint_description="Evening tour",
            data=[dict(waypoint_entry, clue="new clue")],
        )
        second = await self.service.create(db_session, replacement)

        history = await self.service.history(db_session, "tour")
        assert [h.waypoints_id for h in history] == [second.waypoints_id, first.waypoints_id]
        assert history[0].data[0]["clue"] == "new clue"

    @pytest.mark.asyncio
    async def test_update_with_mismatched_name(self, db_session, sequence_payload):
        await self.service.create(db_session, sequence_payload)
        with pytest.raises(ValidationError, match="must match"):
            await self.service.update(db_session, "tour", dict(sequence_payload, waypoint_name="other"))

        assert len(await self.service.history(db_session, "tour")) == 1

    @pytest.mark.asyncio
    async def test_update_replaces_waypoints(self, db_session, sequence_payload, waypoint_entry):
        await self.service.create(db_session, sequence_payload)
        new_data = [waypoint_entry, dict(waypoint_entry, waypoint_seq_id=2, hints=["left"])]

        updated = await self.service.update(
            db_session, "tour", dict(sequence_payload, data=new_data)
        )

        assert len(updated.data) == 2
        assert updated.data[1]["hints"] == ["left"]
        assert len(await self.service.history(db_session, "tour")) == 2

    @pytest.mark.asyncio
    async def test_invalid_entry_aborts_write(self, db_session, sequence_payload, waypoint_entry):
        sequence_payload["data"].append(
            dict(waypoint_entry, waypoint_seq_id=2, location={"lat": 95, "long": 0})
        )
        with pytest.raises(ValidationError):
            await self.service.create(db_session, sequence_payload)

        assert await self.service.store.exists_any_version(db_session, "tour") is False

    @pytest.mark.asyncio
    async def test_missing_sequence(self, db_session, sequence_payload):
        with pytest.raises(NotFoundError):
            await self.service.get(db_session, "nowhere")
        with pytest.raises(NotFoundError):
            await self.service.delete(db_session, "nowhere")
        with pytest.raises(NotFoundError):
            await self.service.update(db_session, "nowhere", dict(sequence_payload, waypoint_name="nowhere"))
        with pytest.raises(NotFoundError):
            await self.service.history(db_session, "nowhere")

    @pytest.mark.asyncio
    async def test_summary_and_list(self, db_session, sequence_payload):
        await self.service.create(db_session, sequence_payload)
        await self.service.create(db_session, dict(sequence_payload, waypoint_name="park"))
        await self.service.delete(db_session, "park")

        summary = await self.service.summary(db_session)
        everything = await self.service.list(db_session, include_deleted=True)
        only_park = await self.service.list(db_session, include_deleted=True, name="Park")

        assert [s.waypoint_name for s in summary] == ["tour"]
        assert not hasattr(summary[0], "data")
        assert len(everything) == 2
        assert [s.waypoint_name for s in only_park] == ["park"]
