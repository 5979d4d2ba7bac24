"""
Change notification.
Subscribers are notified after a write has been committed, so they can
re-fetch the rows they display.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

logger = logging.getLogger("levelup.events")


@dataclass(frozen=True)
class ChangeEvent:
    user_id: str
    table: str
    action: str  # INSERT, UPDATE, DELETE
    payload: dict = field(default_factory=dict)


Subscriber = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """In-process publish/subscribe keyed by user id"""

    def __init__(self):
        self._subscribers: Dict[Optional[str], List[Subscriber]] = {}

    def subscribe(self, callback: Subscriber, user_id: Optional[str] = None) -> Callable[[], None]:
        """
        Register a callback for one user's changes (or all users with None).

        Returns:
            A function that removes the subscription
        """
        self._subscribers.setdefault(user_id, []).append(callback)

        def unsubscribe():
            self.unsubscribe(callback, user_id)

        return unsubscribe

    def unsubscribe(self, callback: Subscriber, user_id: Optional[str] = None) -> None:
        callbacks = self._subscribers.get(user_id, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def publish(self, event: ChangeEvent) -> None:
        """Deliver an event; a failing subscriber never fails the write"""
        callbacks = self._subscribers.get(event.user_id, []) + self._subscribers.get(None, [])
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Change subscriber failed for {event.table}/{event.action}: {e}")


notifier = ChangeNotifier()
