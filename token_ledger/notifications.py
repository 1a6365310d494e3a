"""
Notification Sink Module

Fire-and-forget delivery of the human-readable success and failure messages
produced by token operations. The core only ever calls notify(success,
message) and never looks at the outcome of a delivery.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

import requests

from .logging_config import get_logger


@dataclass
class Notification:
    """A single success or failure message"""
    success: bool
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
        }


class NotificationSink(ABC):
    """Abstract outbound notification channel"""

    @abstractmethod
    def notify(self, success: bool, message: str) -> None:
        """Deliver a message. Must not raise on delivery problems."""
        pass


class LogNotificationSink(NotificationSink):
    """Writes notifications to the structured log"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("token_ledger.notifications")

    def notify(self, success: bool, message: str) -> None:
        if success:
            self.logger.info(message, extra={"extra": {"success": True}})
        else:
            self.logger.warning(message, extra={"extra": {"success": False}})


class RecordingNotificationSink(NotificationSink):
    """Keeps every notification in memory, newest last"""

    def __init__(self):
        self.notifications: List[Notification] = []

    def notify(self, success: bool, message: str) -> None:
        self.notifications.append(Notification(success=success, message=message))

    @property
    def last(self) -> Optional[Notification]:
        if not self.notifications:
            return None
        return self.notifications[-1]

    @property
    def messages(self) -> List[str]:
        return [n.message for n in self.notifications]

    def clear(self) -> None:
        self.notifications.clear()

    def replay(self, sink: NotificationSink) -> None:
        """Forward the recorded notifications to sink, oldest first, and forget them"""
        pending, self.notifications = self.notifications, []
        for notification in pending:
            sink.notify(notification.success, notification.message)

    def __len__(self) -> int:
        return len(self.notifications)


class WebhookNotificationSink(NotificationSink):
    """POSTs each notification as JSON to an external endpoint"""

    def __init__(self, url: str, timeout: float = 2.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = get_logger("token_ledger.notifications")

    def notify(self, success: bool, message: str) -> None:
        payload = Notification(success=success, message=message).to_dict()
        try:
            response = self.session.post(
                self.url,
                json=payload,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"}
            )
            if response.status_code >= 400:
                self.logger.warning(
                    f"Webhook notification rejected with HTTP {response.status_code}"
                )
        except requests.RequestException as e:
            self.logger.warning(f"Webhook notification failed: {e}")


class CompositeNotificationSink(NotificationSink):
    """Fans each notification out to several sinks"""

    def __init__(self, sinks: List[NotificationSink]):
        self.sinks = list(sinks)

    def notify(self, success: bool, message: str) -> None:
        for sink in self.sinks:
            sink.notify(success, message)
