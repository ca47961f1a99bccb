# tests/test_sensor_poller.py
"""Unit tests for the background sensor poller."""

import pytest
from unittest.mock import AsyncMock, patch
from app.models.location import Location
from app.services.sensor_poller import poll_once


class TestSensorPoller:
    @pytest.mark.asyncio
    async def test_only_locations_with_telemetry_are_evaluated(self, session_factory, db, location):
        db.add(Location(name="No Channel Yet"))
        db.commit()

        with patch("app.services.sensor_poller.evaluate_location", new_callable=AsyncMock,
                   return_value={"success": True, "message": "All sensors within normal range"}) as ev:
            count = await poll_once(session_factory)

        assert count == 1
        assert ev.await_args[0][1] == location.id

    @pytest.mark.asyncio
    async def test_one_failing_location_does_not_stop_the_tick(self, session_factory, db, location):
        db.add(Location(name="Second", thingspeak_channel_id="9", thingspeak_read_key="K"))
        db.commit()

        with patch("app.services.sensor_poller.evaluate_location", new_callable=AsyncMock,
                   side_effect=[RuntimeError("store down"), {"success": True, "created": True}]) as ev:
            count = await poll_once(session_factory)

        assert ev.await_count == 2
        assert count == 1
