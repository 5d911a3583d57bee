import logging
from collections import deque
from datetime import datetime, timezone
from typing import List

from warehouse.schemas.stock_in import Notification, NotificationLevel

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


class Notifier:
    """
    Collects user-visible notifications.

    Every notification is logged and kept in a bounded history that the
    UI polls through the notifications endpoint.
    """

    def __init__(self, history_size: int = 50):
        self._history = deque(maxlen=history_size)

    def notify(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(
            level=level,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        self._history.append(notification)
        logger.log(_LOG_LEVELS[level], message)
        return notification

    def success(self, message: str) -> Notification:
        return self.notify(NotificationLevel.SUCCESS, message)

    def warning(self, message: str) -> Notification:
        return self.notify(NotificationLevel.WARNING, message)

    def error(self, message: str) -> Notification:
        return self.notify(NotificationLevel.ERROR, message)

    def recent(self, limit: int = None) -> List[Notification]:
        """Most recent notifications, newest first."""
        items = list(reversed(self._history))
        return items[:limit] if limit else items

    def clear(self) -> None:
        self._history.clear()
