from roundtimer.client.api import TimerApiClient, TimerApiError
from roundtimer.client.notifier import NotificationEmitter
from roundtimer.client.observer import EventTimerObserver
from roundtimer.client.recovery import RecoveryStore
from roundtimer.client.scheduler import SyncScheduler
from roundtimer.client.snapshot import ClientTimerView, TimerSnapshot
from roundtimer.client.state_machine import ClientTimerStateMachine
from roundtimer.client.ticker import LocalCountdownTicker
