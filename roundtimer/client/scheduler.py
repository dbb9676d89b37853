import logging
import threading
from typing import Callable

import requests

from roundtimer.client.api import TimerApiError
from roundtimer.client.snapshot import TimerSnapshot

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Polls the timer authority every ``interval`` seconds.

    ``request_sync`` wakes the loop for an immediate read, e.g. right after
    the local client issued a control action. Failed reads are logged and
    dropped; the next scheduled read is the retry.
    """

    def __init__(
        self,
        api,
        event_id: int,
        on_snapshot: Callable[[TimerSnapshot], None],
        interval: float = 5.0,
    ):
        self.api = api
        self.event_id = event_id
        self.on_snapshot = on_snapshot
        self.interval = interval
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.consecutive_failures = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            return
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=f"timer-sync-{self.event_id}", daemon=True
        )
        self._thread.start()
        logger.info(f"Timer sync started for event {self.event_id} every {self.interval}s")

    def stop(self, timeout: float | None = None):
        self._stop_event.set()
        self._wake_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout if timeout is not None else self.interval + 1)
        logger.info(f"Timer sync stopped for event {self.event_id}")

    def request_sync(self):
        self._wake_event.set()

    def sync_once(self, stop_event: threading.Event | None = None) -> TimerSnapshot | None:
        stop_event = stop_event or self._stop_event
        try:
            snapshot = self.api.get_timer(self.event_id)
        except (requests.RequestException, TimerApiError) as e:
            self.consecutive_failures += 1
            logger.warning(
                f"Timer sync for event {self.event_id} failed "
                f"({self.consecutive_failures} in a row): {e}"
            )
            return None

        self.consecutive_failures = 0
        if stop_event.is_set():
            # Stopped while the read was in flight
            logger.debug(f"Dropping timer snapshot for event {self.event_id} read after stop")
            return None
        try:
            self.on_snapshot(snapshot)
        except Exception:
            logger.exception(f"Applying timer snapshot for event {self.event_id} failed")
        return snapshot

    def _run(self):
        stop_event, wake_event = self._stop_event, self._wake_event
        while not stop_event.is_set():
            self.sync_once(stop_event)
            wake_event.wait(self.interval)
            wake_event.clear()
