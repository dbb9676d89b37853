import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

RoundEndedHandler = Callable[[int, int], None]


class NotificationEmitter:
    """Fire-once end-of-round signal.

    Each ``(event_id, round)`` pair reaches the registered handlers at most
    once, however many reconciliations observe the same expiry.
    """

    def __init__(self, handlers: list[RoundEndedHandler] | None = None):
        self._handlers = list(handlers or [])
        self._fired: set[tuple[int, int]] = set()
        self._lock = threading.Lock()

    def add_handler(self, handler: RoundEndedHandler):
        self._handlers.append(handler)

    def has_fired(self, event_id: int, round_number: int) -> bool:
        with self._lock:
            return (event_id, round_number) in self._fired

    def emit(self, event_id: int, round_number: int) -> bool:
        """Deliver the signal; returns False when it had already been delivered."""
        key = (event_id, round_number)
        with self._lock:
            if key in self._fired:
                return False
            self._fired.add(key)

        logger.info(f"Round {round_number} of event {event_id} ended; notifying {len(self._handlers)} handler(s)")
        for handler in list(self._handlers):
            try:
                handler(event_id, round_number)
            except Exception:
                logger.exception(f"Round-ended handler {handler!r} failed for event {event_id}")
        return True
