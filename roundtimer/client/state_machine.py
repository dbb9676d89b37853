import logging
import threading
from typing import Callable

from roundtimer import round_clock
from roundtimer.client.notifier import NotificationEmitter
from roundtimer.client.snapshot import (
    ACTIVE,
    BREAK_TIME,
    ENDED,
    PAUSED,
    ClientTimerView,
    TimerSnapshot,
)

logger = logging.getLogger(__name__)

ViewListener = Callable[[ClientTimerView], None]


class ClientTimerStateMachine:
    """Reconciles authoritative snapshots into a displayable countdown.

    Every snapshot snaps ``seconds_remaining`` to the value derived from the
    round start time; between snapshots ``tick`` only ever moves it down.
    When the countdown reaches zero the view is moved to ``break_time`` (or
    ``ended`` on the final round) without waiting for the next poll.

    Listeners and the notification emitter are called outside the lock, so a
    listener may restart the ticker without deadlocking against it.
    """

    def __init__(self, event_id: int, notifier: NotificationEmitter | None = None, clock=None):
        self.event_id = event_id
        self.notifier = notifier or NotificationEmitter()
        self._clock = clock or round_clock.utc_now
        self._lock = threading.RLock()
        self._view = ClientTimerView(event_id=event_id)
        self._snapshot: TimerSnapshot | None = None
        self._notified_zero = False
        self._listeners: list[ViewListener] = []

    @property
    def view(self) -> ClientTimerView:
        with self._lock:
            return self._view

    @property
    def snapshot(self) -> TimerSnapshot | None:
        with self._lock:
            return self._snapshot

    @property
    def has_authoritative_state(self) -> bool:
        return self.snapshot is not None

    def add_listener(self, listener: ViewListener):
        self._listeners.append(listener)

    def apply_snapshot(self, snapshot: TimerSnapshot, now=None) -> ClientTimerView:
        now = now or self._clock()
        with self._lock:
            previous = self._view
            self._snapshot = snapshot
            seconds = 0
            status = snapshot.status
            if status == ACTIVE and snapshot.round_start_time is not None:
                seconds = round_clock.remaining(now, snapshot.round_start_time, snapshot.round_duration)
            elif status == ACTIVE:
                seconds = snapshot.time_remaining
            elif status == PAUSED:
                seconds = snapshot.pause_time_remaining or 0

            view = ClientTimerView(
                event_id=self.event_id,
                status=status,
                seconds_remaining=max(0, int(seconds)),
                current_round=snapshot.current_round,
                final_round=snapshot.final_round,
                round_duration=snapshot.round_duration,
                break_duration=snapshot.break_duration,
                has_timer=snapshot.has_timer,
                source="poll",
                revision=previous.revision + 1,
            )
            if view.status == ACTIVE and view.seconds_remaining == 0:
                # The server will confirm the expiry on its next read
                view = view.evolve(status=view.expired_status)
            fire = self._commit(previous, view)
        self._publish(view, fire)
        return view

    def apply_recovery(self, recovered: ClientTimerView) -> bool:
        """Show a stored view until the first real snapshot arrives."""
        with self._lock:
            if self._snapshot is not None:
                return False
            previous = self._view
            view = recovered.evolve(event_id=self.event_id, source="recovery", revision=previous.revision + 1)
            if view.status == ACTIVE and view.seconds_remaining == 0:
                view = view.evolve(status=view.expired_status)
            # A recovered view never announces a round end it did not witness
            self._notified_zero = view.status in (BREAK_TIME, ENDED)
            self._view = view
        self._publish(view, None)
        return True

    def tick(self, revision: int | None = None, now=None) -> ClientTimerView:
        """Advance the local countdown by one second.

        ``revision`` is the view revision the caller's countdown was started
        for; a tick for an older revision is ignored.
        """
        now = now or self._clock()
        with self._lock:
            previous = self._view
            if revision is not None and revision != previous.revision:
                return previous
            if not previous.is_counting_down:
                return previous

            seconds = previous.seconds_remaining - 1
            snapshot = self._snapshot
            if (
                snapshot is not None
                and snapshot.status == ACTIVE
                and snapshot.round_start_time is not None
            ):
                # Never behind the authoritative start time, even if ticks were missed
                seconds = min(
                    seconds,
                    round_clock.remaining(now, snapshot.round_start_time, snapshot.round_duration),
                )
            seconds = max(0, seconds)

            view = previous.evolve(seconds_remaining=seconds, source="tick")
            if seconds == 0:
                view = view.evolve(status=view.expired_status)
                logger.info(
                    f"Round {view.current_round} of event {self.event_id} reached zero locally -> {view.status}"
                )
            fire = self._commit(previous, view)
        self._publish(view, fire)
        return view

    def _commit(self, previous: ClientTimerView, view: ClientTimerView):
        """Store ``view`` and decide whether it is an unannounced zero-crossing."""
        fire = None
        if view.status in (ACTIVE, PAUSED) and view.seconds_remaining > 0:
            self._notified_zero = False
        elif (
            view.status in (BREAK_TIME, ENDED)
            and previous.status in (ACTIVE, PAUSED)
            and not self._notified_zero
        ):
            self._notified_zero = True
            fire = (self.event_id, previous.current_round)
        self._view = view
        return fire

    def _publish(self, view: ClientTimerView, fire):
        if fire is not None:
            self.notifier.emit(*fire)
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception(f"Timer view listener failed for event {self.event_id}")
