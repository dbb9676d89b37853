from enum import Enum


class EventStatus(Enum):
    REGISTRATION_OPEN = "Registration Open"
    IN_PROGRESS = "In Progress"
    PAUSED = "Paused"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# Event statuses in which the round timer may be controlled
LIVE_EVENT_STATUSES = (EventStatus.IN_PROGRESS.value, EventStatus.PAUSED.value)


class TimerStatus(Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    PAUSED = "paused"
    BREAK_TIME = "break_time"
    ENDED = "ended"


class UserRole(Enum):
    USER = 1
    ORGANIZER = 2
    ADMIN = 3
