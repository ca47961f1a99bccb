# tests/test_alert_lifecycle.py
"""Unit tests for the alert lifecycle manager (create / update / none)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime, timedelta
from sqlalchemy.exc import OperationalError
from app.models.alert import Alert
from app.services import alert_lifecycle
from app.services.alert_lifecycle import process, location_lock, CREATED, UPDATED, NONE
from app.services.threshold_evaluator import Classification

FIRE = Classification("fire", "critical")


def make_db(existing=None):
    db = MagicMock()
    db.query.return_value.filter.return_value.order_by.return_value.first.return_value = existing
    return db


class TestAlertLifecycle:
    @pytest.mark.asyncio
    async def test_no_classification_is_noop(self):
        db, feed = MagicMock(), MagicMock()
        result = await process(db, "loc-1", None, feed=feed)
        assert result.outcome == NONE
        db.query.assert_not_called()
        feed.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_creates_active_alert_when_window_empty(self):
        db, feed = make_db(None), MagicMock()
        result = await process(db, "loc-1", FIRE, {"flame": "FLAME"}, feed=feed)

        assert result.outcome == CREATED
        db.add.assert_called_once()
        created = db.add.call_args[0][0]
        assert isinstance(created, Alert)
        assert created.status == "active"
        assert created.alert_type == "fire"
        assert created.sensor_values == {"flame": "FLAME"}
        db.commit.assert_called_once()
        feed.publish.assert_called_once_with("insert", created)

    @pytest.mark.asyncio
    async def test_updates_existing_alert_in_place(self):
        existing = MagicMock()
        existing.status = "in_queue"
        db, feed = make_db(existing), MagicMock()
        now = datetime(2026, 10, 18, 12, 0)

        result = await process(db, "loc-1", Classification("gas_leak", "critical"),
                               {"gas": 500}, feed=feed, now=now)

        assert result.outcome == UPDATED
        assert result.alert is existing
        db.add.assert_not_called()
        assert existing.alert_type == "gas_leak"
        assert existing.sensor_values == {"gas": 500}
        assert existing.timestamp == now
        assert existing.status == "in_queue"     # detections never touch status
        feed.publish.assert_called_once_with("update", existing)

    @pytest.mark.asyncio
    async def test_store_failure_rolls_back_and_raises(self):
        db, feed = make_db(None), MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))

        with pytest.raises(OperationalError):
            await process(db, "loc-1", FIRE, feed=feed)
        db.rollback.assert_called_once()
        feed.publish.assert_not_called()

    def test_location_lock_is_per_location(self):
        assert location_lock("a") is location_lock("a")
        assert location_lock("a") is not location_lock("b")

    @pytest.mark.asyncio
    async def test_window_filters_open_statuses_by_default(self):
        db = make_db(None)
        with patch.object(alert_lifecycle.settings, "ALERT_REUSE_CLOSED_IN_WINDOW", False):
            await process(db, "loc-1", FIRE, feed=MagicMock())
        assert len(db.query.return_value.filter.call_args[0]) == 3

    @pytest.mark.asyncio
    async def test_legacy_window_ignores_status(self):
        db = make_db(None)
        with patch.object(alert_lifecycle.settings, "ALERT_REUSE_CLOSED_IN_WINDOW", True):
            await process(db, "loc-1", FIRE, feed=MagicMock())
        assert len(db.query.return_value.filter.call_args[0]) == 2
