import logging
import threading

from roundtimer.client.snapshot import ClientTimerView

logger = logging.getLogger(__name__)


class LocalCountdownTicker:
    """Single per-second countdown loop for one observed event.

    The loop is never reused: whenever the driving view changes it is
    stopped (its cancellation token set and the thread joined) and a new one
    is started, so two loops never decrement the same value.
    """

    def __init__(self, state_machine, interval: float = 1.0):
        self.state_machine = state_machine
        self.interval = interval
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None
        self._driving_key = None

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def drive(self, view: ClientTimerView):
        """Align the loop with a view that did not come from this ticker."""
        with self._lock:
            if view.is_counting_down and self.is_running and view.driving_key == self._driving_key:
                return
            self._stop_locked()
            if view.is_counting_down:
                self._start_locked(view)

    def stop(self):
        with self._lock:
            self._stop_locked()

    def _start_locked(self, view: ClientTimerView):
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(stop_event, view.revision),
            name=f"countdown-{view.event_id}-r{view.current_round}",
            daemon=True,
        )
        self._stop_event = stop_event
        self._thread = thread
        self._driving_key = view.driving_key
        thread.start()
        logger.debug(f"Countdown started for event {view.event_id} at {view.seconds_remaining}s")

    def _stop_locked(self):
        thread, stop_event = self._thread, self._stop_event
        self._thread = None
        self._stop_event = None
        self._driving_key = None
        if stop_event is not None:
            stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval * 2)

    def _run(self, stop_event: threading.Event, revision: int):
        while not stop_event.wait(self.interval):
            try:
                view = self.state_machine.tick(revision)
            except Exception:
                logger.exception("Countdown tick failed")
                break
            if view.revision != revision or not view.is_counting_down:
                break
