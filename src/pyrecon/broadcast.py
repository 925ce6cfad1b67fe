"""In-process change broadcaster."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable

from pyrecon.state.events import ChangeNotification

_logger = logging.getLogger(__name__)

ChangeSubscriber = Callable[[ChangeNotification], None]


class ChangeBroadcaster:
    """Fan out :class:`ChangeNotification` objects to registered subscribers.

    Delivery is synchronous, best-effort and at-most-once per call. A
    subscriber that raises is logged and skipped; the remaining subscribers
    still receive the notification. No ordering is promised across
    different collection keys.
    """

    def __init__(self, *, origin: str | None = None) -> None:
        self._origin = origin or secrets.token_hex(8)
        self._subscribers: list[ChangeSubscriber] = []

    @property
    def origin(self) -> str:
        """Identifier stamped on notifications produced by this instance."""
        return self._origin

    def subscribe(self, callback: ChangeSubscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: ChangeSubscriber) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            return

    def notify(self, collection_key: str, new_serialized_value: str) -> ChangeNotification:
        """Announce that *collection_key* now holds *new_serialized_value*."""
        notification = ChangeNotification(
            collection_key=collection_key,
            new_serialized_value=new_serialized_value,
            origin=self._origin,
        )
        self.deliver(notification)
        return notification

    def deliver(self, notification: ChangeNotification) -> None:
        """Hand an already-built notification (local or relayed) to subscribers."""
        _logger.debug(
            "Delivering change key=%s origin=%s subscribers=%d",
            notification.collection_key,
            notification.origin,
            len(self._subscribers),
        )
        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception:
                _logger.warning("Change subscriber failed key=%s", notification.collection_key, exc_info=True)
