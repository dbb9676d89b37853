from roundtimer.repositories.event_timer_repository import EventTimerRepository
from roundtimer.repositories.event_repository import EventRepository
from roundtimer.models.event_timer import EventTimer
from roundtimer.models.enums import TimerStatus
from roundtimer.exceptions import (
    EventNotFoundError,
    EventNotLiveError,
    InvalidTransitionError,
)
from roundtimer import round_clock
from typing import Dict, Any
from flask import current_app


class EventTimerService:
    """Timer authority: every read and write of an event's round timer.

    Writes return the post-transition snapshot. A rejected control action
    returns ``{"error": ..., "rejected": True}`` merged with the unchanged
    snapshot instead of raising, so callers can show it as advisory.
    """

    @staticmethod
    def get_timer_status(event_id: int, now=None) -> Dict[str, Any]:
        """Get the current timer status, ending an expired round first"""
        now = now or round_clock.utc_now()
        timer = EventTimerRepository.expire_if_due(event_id, now)
        return EventTimerService.build_snapshot(timer, now)

    @staticmethod
    def get_round_info(event_id: int, now=None) -> Dict[str, Any]:
        """Minimal round information for attendees and the pairing service"""
        snapshot = EventTimerService.get_timer_status(event_id, now)
        return {
            "has_timer": snapshot["has_timer"],
            "status": snapshot["status"],
            "current_round": (
                snapshot["timer"]["current_round"] if snapshot.get("timer") else None
            ),
        }

    @staticmethod
    def initialize_timer(event_id: int, now=None) -> Dict[str, Any]:
        """Provision the timer record for a live event if it does not exist yet"""
        now = now or round_clock.utc_now()
        event = EventTimerService.require_live_event(event_id)
        timer = EventTimerService._get_or_create(event)
        return EventTimerService.build_snapshot(timer, now)

    @staticmethod
    def start_round(event_id: int, now=None) -> Dict[str, Any]:
        """Start round 1"""
        now = now or round_clock.utc_now()
        event = EventTimerService.require_live_event(event_id)
        EventTimerService._get_or_create(event)
        return EventTimerService._transition(
            event_id,
            now,
            lambda: EventTimerRepository.start_round(
                event_id, now, EventTimerService._final_round_for(event)
            ),
        )

    @staticmethod
    def pause_round(event_id: int, time_remaining: int | None = None, now=None) -> Dict[str, Any]:
        """Pause the current round"""
        now = now or round_clock.utc_now()
        EventTimerService.require_live_event(event_id)
        return EventTimerService._transition(
            event_id,
            now,
            lambda: EventTimerRepository.pause_round(event_id, now, time_remaining),
        )

    @staticmethod
    def resume_round(event_id: int, now=None) -> Dict[str, Any]:
        """Resume a paused round"""
        now = now or round_clock.utc_now()
        current_app.logger.info(
            f"EventTimerService: Attempting to resume round for event {event_id}"
        )
        EventTimerService.require_live_event(event_id)
        return EventTimerService._transition(
            event_id, now, lambda: EventTimerRepository.resume_round(event_id, now)
        )

    @staticmethod
    def end_round(event_id: int, now=None) -> Dict[str, Any]:
        """End the running round ahead of time"""
        now = now or round_clock.utc_now()
        EventTimerService.require_live_event(event_id)
        return EventTimerService._transition(
            event_id, now, lambda: EventTimerRepository.end_round(event_id, now)
        )

    @staticmethod
    def next_round(event_id: int, now=None) -> Dict[str, Any]:
        """Advance from a break to the next round"""
        now = now or round_clock.utc_now()
        EventTimerService.require_live_event(event_id)
        return EventTimerService._transition(
            event_id, now, lambda: EventTimerRepository.next_round(event_id, now)
        )

    @staticmethod
    def update_duration(
        event_id: int, round_duration: int = None, break_duration: int = None, now=None
    ) -> Dict[str, Any]:
        """Update the round and/or break duration"""
        now = now or round_clock.utc_now()
        config = current_app.config
        messages = []

        if round_duration is not None:
            low, high = config["ROUND_DURATION_MIN"], config["ROUND_DURATION_MAX"]
            if round_duration < low or round_duration > high:
                return {"error": f"Round duration must be between {low} and {high} seconds"}
            messages.append(f"Round duration updated to {round_duration} seconds")

        if break_duration is not None:
            low, high = config["BREAK_DURATION_MIN"], config["BREAK_DURATION_MAX"]
            if break_duration < low or break_duration > high:
                return {"error": f"Break duration must be between {low} and {high} seconds"}
            messages.append(f"Break duration updated to {break_duration} seconds")

        if not messages:
            return {"error": "No duration values provided to update"}

        event = EventTimerService.require_live_event(event_id)
        EventTimerService._get_or_create(event)
        result = EventTimerService._transition(
            event_id,
            now,
            lambda: EventTimerRepository.update_durations(
                event_id, now, round_duration, break_duration
            ),
        )
        if "error" not in result:
            result["message"] = ". ".join(messages)
        return result

    @staticmethod
    def expire_due_timers(now=None) -> list[Dict[str, Any]]:
        """Apply lazy expiry to every active timer; return snapshots that changed"""
        now = now or round_clock.utc_now()
        changed = []
        for timer in EventTimerRepository.get_active_timers():
            if timer.time_remaining(now) > 0:
                continue
            refreshed = EventTimerRepository.expire_round(timer.event_id, now)
            if refreshed is None:
                # Another reader ended it first and already reported it
                continue
            changed.append(EventTimerService.build_snapshot(refreshed, now))
        if changed:
            current_app.logger.info(f"EventTimerService: Expired {len(changed)} round(s)")
        return changed

    @staticmethod
    def require_live_event(event_id: int):
        event = EventRepository.get_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        if not event.is_live:
            raise EventNotLiveError(event_id, event.status)
        return event

    @staticmethod
    def build_snapshot(timer: EventTimer | None, now) -> Dict[str, Any]:
        if timer is None:
            return {
                "has_timer": False,
                "status": TimerStatus.INACTIVE.value,
                "time_remaining": 0,
                "server_time": round_clock.format_timestamp(now),
                "message": "Timer not initialized",
            }

        status = timer.timer_status
        if status == TimerStatus.ACTIVE:
            message = f"Round {timer.current_round} in progress"
        elif status == TimerStatus.PAUSED:
            message = f"Round {timer.current_round} paused with {timer.pause_time_remaining} seconds remaining"
        elif status == TimerStatus.BREAK_TIME:
            message = f"Break after round {timer.current_round}"
        elif status == TimerStatus.ENDED:
            message = "All rounds completed"
        else:
            message = "Timer not started"

        return {
            "has_timer": True,
            "status": timer.status,
            "time_remaining": timer.time_remaining(now),
            "server_time": round_clock.format_timestamp(now),
            "message": message,
            "timer": timer.to_dict(),
        }

    @staticmethod
    def _transition(event_id: int, now, action) -> Dict[str, Any]:
        try:
            timer = action()
        except InvalidTransitionError as e:
            result = EventTimerService.build_snapshot(
                e.timer or EventTimerRepository.get_timer(event_id), now
            )
            result["error"] = str(e)
            result["rejected"] = True
            return result
        return EventTimerService.build_snapshot(timer, now)

    @staticmethod
    def _final_round_for(event) -> int:
        return event.num_rounds or current_app.config["DEFAULT_NUM_ROUNDS"]

    @staticmethod
    def _get_or_create(event) -> EventTimer:
        timer = EventTimerRepository.get_timer(event.id)
        if timer is None:
            config = current_app.config
            timer = EventTimerRepository.create_timer(
                event.id,
                EventTimerService._final_round_for(event),
                config["DEFAULT_ROUND_DURATION"],
                config["DEFAULT_BREAK_DURATION"],
            )
        return timer
