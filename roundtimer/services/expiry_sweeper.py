import threading

from roundtimer.extensions import db, socketio
from roundtimer.services.event_timer_service import EventTimerService
from roundtimer.sockets.timer_sockets import broadcast_timer_update


def sweep_expired_rounds(app) -> int:
    """Run one expiry pass inside an app context and broadcast every change."""
    with app.app_context():
        try:
            changed = EventTimerService.expire_due_timers()
        except Exception as e:
            app.logger.error(f"[timer-sweep] expiry pass failed: {str(e)}", exc_info=True)
            db.session.rollback()
            return 0

        for snapshot in changed:
            broadcast_timer_update(snapshot["timer"]["event_id"], snapshot)
        return len(changed)


class ExpirySweeper:
    """Low-frequency background sweep for events nobody is polling.

    Reads already expire rounds lazily, so this only keeps socket observers
    up to date when no client happens to be polling an event.
    """

    def __init__(self, app, interval: int | None = None):
        self.app = app
        self.interval = interval if interval is not None else app.config.get("TIMER_SWEEP_INTERVAL_SEC", 0)
        self._stop_event: threading.Event | None = None

    @property
    def is_running(self) -> bool:
        return self._stop_event is not None

    def start(self) -> bool:
        if self.interval <= 0 or self.is_running:
            return False
        # Each run gets its own token so a stopped loop never resumes
        self._stop_event = threading.Event()
        self.app.logger.info(f"[timer-sweep] starting, every {self.interval}s")
        socketio.start_background_task(self._run, self._stop_event)
        return True

    def stop(self):
        stop_event, self._stop_event = self._stop_event, None
        if stop_event is not None:
            stop_event.set()
            self.app.logger.info("[timer-sweep] stopped")

    def _run(self, stop_event: threading.Event):
        while not stop_event.is_set():
            socketio.sleep(self.interval)
            if stop_event.is_set():
                break
            count = sweep_expired_rounds(self.app)
            if count:
                self.app.logger.info(f"[timer-sweep] expired {count} round(s)")
