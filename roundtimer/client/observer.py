import logging
import threading

import requests

from roundtimer.client.api import TimerApiClient, TimerApiError
from roundtimer.client.notifier import NotificationEmitter
from roundtimer.client.recovery import RecoveryStore
from roundtimer.client.scheduler import SyncScheduler
from roundtimer.client.snapshot import ClientTimerView
from roundtimer.client.state_machine import ClientTimerStateMachine
from roundtimer.client.ticker import LocalCountdownTicker

logger = logging.getLogger(__name__)


class EventTimerObserver:
    """Everything one client needs to follow (and control) one event's timer.

    Owns exactly one sync loop and at most one countdown loop; both are
    cancelled by ``stop``. Use as a context manager so leaving the event
    always tears them down.
    """

    def __init__(
        self,
        api: TimerApiClient,
        event_id: int,
        poll_interval: float = 5.0,
        tick_interval: float = 1.0,
        notifier: NotificationEmitter | None = None,
        recovery_store: RecoveryStore | None = None,
        clock=None,
    ):
        self.api = api
        self.event_id = event_id
        self.notifier = notifier or NotificationEmitter()
        self.recovery_store = recovery_store
        self.state_machine = ClientTimerStateMachine(event_id, self.notifier, clock=clock)
        self.ticker = LocalCountdownTicker(self.state_machine, interval=tick_interval)
        self.scheduler = SyncScheduler(
            api, event_id, self.state_machine.apply_snapshot, interval=poll_interval
        )
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self.state_machine.add_listener(self._on_view)

    @property
    def view(self) -> ClientTimerView:
        return self.state_machine.view

    def add_listener(self, listener):
        self.state_machine.add_listener(listener)

    def start(self):
        self._stopped.clear()
        if self.recovery_store is not None:
            recovered = self.recovery_store.load(self.event_id)
            if recovered is not None:
                logger.info(
                    f"Showing recovered timer state for event {self.event_id}: "
                    f"{recovered.status}, {recovered.seconds_remaining}s"
                )
                self.state_machine.apply_recovery(recovered)
        self.scheduler.start()
        return self

    def stop(self):
        # Views arriving from requests still in flight no longer drive anything
        with self._lock:
            self._stopped.set()
        self.scheduler.stop()
        self.ticker.stop()

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    # Organizer controls. Each returns None on success or the advisory
    # message of a rejected or failed request.

    def start_round(self):
        return self._control("start", lambda: self.api.start(self.event_id))

    def pause(self, time_remaining: int | None = None):
        if time_remaining is None:
            time_remaining = self.view.seconds_remaining
        return self._control("pause", lambda: self.api.pause(self.event_id, time_remaining))

    def resume(self):
        return self._control("resume", lambda: self.api.resume(self.event_id))

    def end_round(self):
        return self._control("end round", lambda: self.api.end_round(self.event_id))

    def next_round(self):
        return self._control("next round", lambda: self.api.next_round(self.event_id))

    def update_duration(self, round_duration: int | None = None, break_duration: int | None = None):
        return self._control(
            "update duration",
            lambda: self.api.update_duration(self.event_id, round_duration, break_duration),
        )

    def _control(self, action, call):
        try:
            snapshot = call()
        except TimerApiError as e:
            logger.warning(f"Timer '{action}' for event {self.event_id} was not applied: {e.message}")
            if e.snapshot is not None:
                self.state_machine.apply_snapshot(e.snapshot)
            return e.message
        except requests.RequestException as e:
            logger.warning(f"Timer '{action}' for event {self.event_id} failed: {e}")
            return f"Could not reach the timer service: {e}"
        finally:
            self.scheduler.request_sync()

        self.state_machine.apply_snapshot(snapshot)
        return None

    def _on_view(self, view: ClientTimerView):
        if view.source == "tick":
            return
        with self._lock:
            if self._stopped.is_set():
                return
            if view.source == "poll" and self.recovery_store is not None:
                self.recovery_store.save(view)
            self.ticker.drive(view)
