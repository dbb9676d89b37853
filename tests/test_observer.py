import threading
import time

import pytest
import requests

from roundtimer.client.api import TimerApiError
from roundtimer.client.notifier import NotificationEmitter
from roundtimer.client.observer import EventTimerObserver
from roundtimer.client.recovery import RecoveryStore
from roundtimer.client.snapshot import ClientTimerView, TimerSnapshot

from conftest import FakeClock, T0

EVENT_ID = 31


def snapshot(status, **fields):
    base = dict(event_id=EVENT_ID, has_timer=True, status=status, current_round=1,
                final_round=2, round_duration=180, break_duration=60)
    base.update(fields)
    return TimerSnapshot(**base)


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class FakeApi:
    """Stands in for TimerApiClient; every read returns ``current``."""

    def __init__(self, current):
        self.current = current
        self.gate = threading.Event()
        self.gate.set()
        self.calls = []
        self.failure = None

    def get_timer(self, event_id):
        self.gate.wait(5)
        return self.current

    def _write(self, name, *args):
        self.calls.append((name,) + args)
        if self.failure is not None:
            raise self.failure
        return self.current

    def start(self, event_id):
        self.current = snapshot('active', round_start_time=T0)
        return self._write('start', event_id)

    def pause(self, event_id, time_remaining=None):
        return self._write('pause', event_id, time_remaining)

    def resume(self, event_id):
        return self._write('resume', event_id)

    def end_round(self, event_id):
        return self._write('end_round', event_id)

    def next_round(self, event_id):
        return self._write('next_round', event_id)

    def update_duration(self, event_id, round_duration=None, break_duration=None):
        return self._write('update_duration', event_id, round_duration, break_duration)


@pytest.fixture()
def fake_clock():
    return FakeClock()


def make_observer(api, fake_clock, **kwargs):
    return EventTimerObserver(api, EVENT_ID, poll_interval=30, tick_interval=30, clock=fake_clock, **kwargs)


def test_recovered_view_shows_until_the_first_poll(tmp_path, fake_clock):
    store = RecoveryStore(str(tmp_path), client_id='kiosk')
    store.save(ClientTimerView(event_id=EVENT_ID, status='paused', seconds_remaining=50,
                               current_round=1, final_round=2, has_timer=True))
    api = FakeApi(snapshot('paused', pause_time_remaining=12))
    api.gate.clear()

    observer = make_observer(api, fake_clock, recovery_store=store)
    observer.start()
    try:
        assert observer.view.source == 'recovery'
        assert observer.view.seconds_remaining == 50

        api.gate.set()
        assert wait_for(lambda: observer.view.source == 'poll')
        assert observer.view.seconds_remaining == 12
        assert store.load(EVENT_ID).seconds_remaining == 12
    finally:
        api.gate.set()
        observer.stop()


def test_control_applies_the_returned_snapshot_and_drives_the_countdown(fake_clock):
    api = FakeApi(snapshot('inactive', current_round=0))
    with make_observer(api, fake_clock) as observer:
        assert wait_for(lambda: observer.view.source == 'poll')
        assert observer.start_round() is None
        assert observer.view.status == 'active'
        assert observer.view.seconds_remaining == 180
        assert observer.ticker.is_running
    assert not observer.ticker.is_running
    assert not observer.scheduler.is_running


def test_pause_sends_the_displayed_seconds(fake_clock):
    api = FakeApi(snapshot('active', round_start_time=T0))
    with make_observer(api, fake_clock) as observer:
        assert wait_for(lambda: observer.view.source == 'poll')
        fake_clock.advance(25)
        observer.state_machine.tick(observer.view.revision)
        api.current = snapshot('paused', pause_time_remaining=155)
        assert observer.pause() is None
        assert observer.view.status == 'paused'
    assert api.calls == [('pause', EVENT_ID, 155)]


def test_rejected_control_returns_the_message(fake_clock):
    api = FakeApi(snapshot('break_time'))
    api.failure = TimerApiError(409, 'Cannot pause while timer is break_time', snapshot('break_time'))
    with make_observer(api, fake_clock) as observer:
        assert observer.pause(10) == 'Cannot pause while timer is break_time'
        assert observer.view.status == 'break_time'


def test_unreachable_server_returns_a_message(fake_clock):
    api = FakeApi(snapshot('active', round_start_time=T0))
    api.failure = requests.ConnectionError('connection refused')
    with make_observer(api, fake_clock) as observer:
        message = observer.next_round()
    assert message.startswith('Could not reach the timer service')


def test_round_end_is_announced_once(fake_clock):
    fired = []
    notifier = NotificationEmitter([lambda e, r: fired.append(r)])
    api = FakeApi(snapshot('active', round_start_time=T0))
    with make_observer(api, fake_clock, notifier=notifier) as observer:
        assert wait_for(lambda: observer.view.source == 'poll')
        fake_clock.advance(180)
        api.current = snapshot('break_time')
        observer.scheduler.sync_once()
        observer.scheduler.sync_once()
    assert fired == [1]


def test_poll_still_in_flight_at_stop_is_dropped(tmp_path, fake_clock):
    store = RecoveryStore(str(tmp_path), client_id='slow-link')
    api = FakeApi(snapshot('active', round_start_time=T0))
    api.gate.clear()
    entered = threading.Event()
    blocking_get = api.get_timer

    def slow_get_timer(event_id):
        entered.set()
        return blocking_get(event_id)

    api.get_timer = slow_get_timer
    observer = EventTimerObserver(api, EVENT_ID, poll_interval=0.01, tick_interval=30,
                                  clock=fake_clock, recovery_store=store)
    observer.start()
    poll_thread = observer.scheduler._thread
    assert entered.wait(2)

    # The poll outlives the scheduler's join timeout
    observer.stop()
    api.gate.set()
    poll_thread.join(2)

    assert not poll_thread.is_alive()
    assert not observer.ticker.is_running
    assert observer.view.source != 'poll'
    assert store.load(EVENT_ID) is None


def test_control_answered_after_stop_does_not_restart_the_countdown(fake_clock):
    api = FakeApi(snapshot('inactive', current_round=0))
    observer = make_observer(api, fake_clock)
    observer.start()
    observer.stop()

    assert observer.start_round() is None
    assert observer.view.status == 'active'
    assert not observer.ticker.is_running
    assert not observer.scheduler.is_running
