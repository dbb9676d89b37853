from roundtimer.models.event import Event
from roundtimer.models.event_timer import EventTimer
from roundtimer.models.user import User
from roundtimer.models.enums import EventStatus, TimerStatus, UserRole
