from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

_VALID_TONES = {"success", "error", "info"}


@dataclass(slots=True, frozen=True)
class Notification:
    id: int
    message: str
    tone: str = "info"


Listener = Callable[[Notification], None]


def normalized_tone(tone: str | None) -> str:
    tone = (tone or "info").lower()
    if tone not in _VALID_TONES:
        return "info"
    return tone


class Notifier:
    """Publish/subscribe registry for short user-facing messages.

    One instance belongs to one application context; listeners registered on
    it go away with it.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._ids = itertools.count(1)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, message: str, tone: str = "info") -> Notification:
        notification = Notification(id=next(self._ids), message=message, tone=normalized_tone(tone))
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Notification listener %r failed", listener)
        return notification

    def clear(self) -> None:
        self._listeners.clear()
