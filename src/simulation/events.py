from __future__ import annotations

from enum import Enum
from typing import Callable, ClassVar, Dict, List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)

Listener = Callable[..., None]

IDLE = "idle"
FLOOR_BUTTON_PRESSED = "floor_button_pressed"
PASSING_FLOOR = "passing_floor"
STOPPED_AT_FLOOR = "stopped_at_floor"
UP_BUTTON_PRESSED = "up_button_pressed"
DOWN_BUTTON_PRESSED = "down_button_pressed"


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    STOPPED = "stopped"

    @property
    def sign(self) -> int:
        if self is Direction.UP:
            return 1
        if self is Direction.DOWN:
            return -1
        return 0


class EventEmitter:
    """Ordered, per-object listener lists keyed by event name.

    Subclasses list the events they emit in ``EVENTS`` and provide a
    ``_listeners`` dict. Listeners run synchronously in registration order;
    one failing listener is logged and does not prevent the others from
    running. Registering for an event the object never emits is logged and
    ignored.
    """

    EVENTS: ClassVar[Tuple[str, ...]] = ()
    _listeners: Dict[str, List[Listener]]

    def on(self, event: str, callback: Listener) -> None:
        if event not in self.EVENTS:
            logger.warning("unknown_event", source=type(self).__name__, event=event, available=list(self.EVENTS))
            return
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Optional[Listener] = None) -> None:
        if callback is None:
            self._listeners.pop(event, None)
            return
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event: str, *args: object) -> None:
        # Copy so listeners may register or remove listeners while we iterate.
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(*args)
            except Exception:
                logger.exception("listener_failed", source=type(self).__name__, event=event)
