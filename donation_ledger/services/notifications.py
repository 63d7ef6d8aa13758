"""User notifications; delivery (push, email) belongs to an external collaborator."""

from typing import Protocol

from donation_ledger.core.exceptions import NotFoundError
from donation_ledger.core.logging import get_logger
from donation_ledger.models.notification import Notification

log = get_logger(__name__)


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class InMemoryNotifier:
    """Keeps an inbox per user for the notifications screen, with read state."""

    def __init__(self) -> None:
        self._inbox: dict[str, list[Notification]] = {}

    def notify(self, notification: Notification) -> None:
        self._inbox.setdefault(notification.user_id, []).append(notification)
        log.info("notification_sent", user_id=notification.user_id, type=notification.type, entity_id=notification.entity_id)

    def inbox(self, user_id: str) -> list[Notification]:
        """Newest first."""
        return list(reversed(self._inbox.get(user_id, [])))

    def unread_count(self, user_id: str) -> int:
        return sum(1 for n in self._inbox.get(user_id, ()) if not n.is_read)

    def mark_read(self, user_id: str, notification_id: str) -> Notification:
        """Only the recipient can mark a notification; anyone else gets NotFoundError."""
        items = self._inbox.get(user_id, [])
        for i, n in enumerate(items):
            if n.id == notification_id:
                if not n.is_read:
                    items[i] = n = n.model_copy(update={"is_read": True})
                return n
        raise NotFoundError("Notification not found", details={"notification_id": notification_id})

    def mark_all_read(self, user_id: str) -> int:
        """Returns how many notifications changed."""
        items = self._inbox.get(user_id, [])
        changed = 0
        for i, n in enumerate(items):
            if not n.is_read:
                items[i] = n.model_copy(update={"is_read": True})
                changed += 1
        return changed

    def clear(self, user_id: str) -> int:
        removed = len(self._inbox.pop(user_id, []))
        log.info("notifications_cleared", user_id=user_id, removed=removed)
        return removed
