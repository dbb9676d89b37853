class UnauthorizedError(Exception):
    pass


class EventNotFoundError(Exception):
    def __init__(self, event_id):
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class EventNotLiveError(Exception):
    """Timer writes are only accepted while the event itself is running."""

    def __init__(self, event_id, event_status):
        super().__init__(
            f"Event {event_id} is '{event_status}'; timer controls are only available for live events"
        )
        self.event_id = event_id
        self.event_status = event_status


class InvalidTransitionError(Exception):
    """A control action that is not valid in the timer's current state.

    Carries the unchanged timer so callers can hand it back to the client.
    """

    def __init__(self, action, status, timer=None, reason=None):
        message = reason or f"Cannot {action} while timer is {status}"
        super().__init__(message)
        self.action = action
        self.status = status
        self.timer = timer
