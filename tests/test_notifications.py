"""
Tests for Notification Sink Module

Tests the recording, logging, webhook and composite sinks.
"""

import logging
from unittest.mock import MagicMock

import pytest
import requests

from token_ledger.notifications import (
    CompositeNotificationSink, LogNotificationSink, Notification,
    RecordingNotificationSink, WebhookNotificationSink
)


class TestNotification:

    def test_to_dict(self):
        notification = Notification(success=False, message="Invalid Sender")
        data = notification.to_dict()
        assert data["success"] is False
        assert data["message"] == "Invalid Sender"
        assert "created_at" in data


class TestRecordingNotificationSink:
    """In-memory sink"""

    def test_records_in_order(self):
        sink = RecordingNotificationSink()
        assert sink.last is None
        sink.notify(True, "first")
        sink.notify(False, "second")
        assert len(sink) == 2
        assert sink.messages == ["first", "second"]
        assert sink.last.success is False

    def test_clear(self):
        sink = RecordingNotificationSink()
        sink.notify(True, "hello")
        sink.clear()
        assert len(sink) == 0

    def test_replay_forwards_and_forgets(self):
        pending, target = RecordingNotificationSink(), RecordingNotificationSink()
        pending.notify(True, "first")
        pending.notify(True, "second")

        pending.replay(target)

        assert target.messages == ["first", "second"]
        assert len(pending) == 0


class TestLogNotificationSink:
    """Logging sink"""

    def test_success_logged_at_info(self, caplog):
        logger = logging.getLogger("notification_sink_test")
        logger.propagate = True
        sink = LogNotificationSink(logger)
        with caplog.at_level(logging.INFO, logger="notification_sink_test"):
            sink.notify(True, "Token created successfully")
            sink.notify(False, "Token already exists")
        levels = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert (logging.INFO, "Token created successfully") in levels
        assert (logging.WARNING, "Token already exists") in levels


class TestWebhookNotificationSink:
    """Webhook sink"""

    def test_posts_json_payload(self):
        session = MagicMock()
        session.post.return_value = MagicMock(status_code=200)
        sink = WebhookNotificationSink("http://hooks.local/token", timeout=1.5, session=session)

        sink.notify(True, "Transfer of 5 from alice to bob")

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args[0] == "http://hooks.local/token"
        assert kwargs["json"]["success"] is True
        assert kwargs["json"]["message"] == "Transfer of 5 from alice to bob"
        assert kwargs["timeout"] == 1.5

    def test_delivery_errors_are_not_raised(self):
        """Fire-and-forget: connection failures are only logged"""
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("unreachable")
        sink = WebhookNotificationSink("http://hooks.local/token", session=session)
        sink.notify(False, "Insufficient Balance (1 < 2) for alice")
        session.post.assert_called_once()

    def test_rejected_delivery_is_not_raised(self):
        session = MagicMock()
        session.post.return_value = MagicMock(status_code=500)
        sink = WebhookNotificationSink("http://hooks.local/token", session=session)
        sink.notify(True, "ok")


class TestCompositeNotificationSink:

    def test_fans_out(self):
        first, second = RecordingNotificationSink(), RecordingNotificationSink()
        sink = CompositeNotificationSink([first, second])
        sink.notify(True, "hello")
        assert first.messages == second.messages == ["hello"]

    def test_empty_composite(self):
        CompositeNotificationSink([]).notify(True, "nobody listens")
