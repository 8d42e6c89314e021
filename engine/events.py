"""Minimal observer list used by agents and simulation drivers."""

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], None]


class EventEmitter:
    """String-keyed publish/subscribe.

    Listeners may unsubscribe (themselves or others) while an event is
    being delivered. A listener that raises is logged and skipped; the
    remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """Subscribe. Returns a handle that removes the subscription."""
        key = str(getattr(event, "value", event))
        self._listeners[key].append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key)
            if listeners and listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def emit(self, event: str, payload: dict[str, Any] | None = None) -> None:
        key = str(getattr(event, "value", event))
        listeners = self._listeners.get(key)
        if not listeners:
            return
        for listener in list(listeners):
            if listener not in listeners:
                continue  # removed earlier in this delivery
            try:
                listener(payload or {})
            except Exception:
                logger.exception("Listener for %r failed", key)

    def listener_count(self, event: str) -> int:
        key = str(getattr(event, "value", event))
        return len(self._listeners.get(key, []))

    def clear(self) -> None:
        self._listeners.clear()
