from roundtimer.extensions import db
from roundtimer.models.event_timer import EventTimer
from roundtimer.models.enums import TimerStatus
from roundtimer.exceptions import InvalidTransitionError
from roundtimer import round_clock
from flask import current_app  # Import current_app for logging

ACTIVE = TimerStatus.ACTIVE.value
PAUSED = TimerStatus.PAUSED.value
BREAK_TIME = TimerStatus.BREAK_TIME.value
ENDED = TimerStatus.ENDED.value
INACTIVE = TimerStatus.INACTIVE.value


class EventTimerRepository:
    """Storage and state transitions of the per-event timer record.

    Every write path locks the row (``SELECT ... FOR UPDATE``), applies lazy
    expiry first, then either performs the transition or raises
    ``InvalidTransitionError`` with the record left as it was.
    """

    @staticmethod
    def get_timer(event_id: int) -> EventTimer | None:
        """Get the timer for a specific event"""
        return EventTimer.query.filter_by(event_id=event_id).first()

    @staticmethod
    def get_timer_for_update(event_id: int) -> EventTimer | None:
        return (
            EventTimer.query.filter_by(event_id=event_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def get_active_timers() -> list[EventTimer]:
        return EventTimer.query.filter_by(status=ACTIVE).all()

    @staticmethod
    def create_timer(
        event_id: int, final_round: int, round_duration: int, break_duration: int
    ) -> EventTimer:
        """Create a new, not yet started timer for an event"""
        timer = EventTimer(
            event_id=event_id,
            status=INACTIVE,
            current_round=0,
            final_round=final_round,
            round_duration=round_duration,
            break_duration=break_duration,
        )
        db.session.add(timer)
        db.session.commit()
        current_app.logger.info(
            f"Repository: Created timer for event {event_id} ({final_round} rounds of {round_duration}s)"
        )
        return timer

    @staticmethod
    def apply_expiry(timer: EventTimer, now) -> bool:
        """End the round in memory if an active round has run out of time.

        Returns True when the record changed; the caller commits.
        """
        if timer.status != ACTIVE or timer.round_start_time is None:
            return False
        if round_clock.remaining(now, timer.round_start_time, timer.round_duration) > 0:
            return False
        EventTimerRepository._finish_round(timer)
        current_app.logger.info(
            f"Repository: Round {timer.current_round} of event {timer.event_id} expired -> {timer.status}"
        )
        return True

    @staticmethod
    def expire_if_due(event_id: int, now) -> EventTimer | None:
        """Read path: load the timer, committing a lazy expiry if one is due."""
        timer, _ = EventTimerRepository._expire_if_due(event_id, now)
        return timer

    @staticmethod
    def expire_round(event_id: int, now) -> EventTimer | None:
        """The timer if this call ended its round; None if there was nothing to end."""
        timer, expired = EventTimerRepository._expire_if_due(event_id, now)
        return timer if expired else None

    @staticmethod
    def _expire_if_due(event_id: int, now) -> tuple[EventTimer | None, bool]:
        timer = EventTimerRepository.get_timer(event_id)
        if timer is None or timer.status != ACTIVE:
            return timer, False
        if round_clock.remaining(now, timer.round_start_time, timer.round_duration) > 0:
            return timer, False

        # Re-read under lock so concurrent readers converge on one outcome
        timer = EventTimerRepository.get_timer_for_update(event_id)
        if EventTimerRepository.apply_expiry(timer, now):
            EventTimerRepository._commit(timer, "expire")
            return timer, True
        db.session.commit()
        return timer, False

    @staticmethod
    def start_round(event_id: int, now, final_round: int | None = None) -> EventTimer:
        """Start round 1 of a timer that has not been started yet"""
        timer = EventTimerRepository._lock_for(event_id, now, "start")
        if timer.status != INACTIVE:
            EventTimerRepository._reject(timer, "start")

        if final_round:
            timer.final_round = final_round
        timer.current_round = 1
        timer.status = ACTIVE
        timer.round_start_time = now
        timer.pause_time_remaining = None
        return EventTimerRepository._commit(timer, "start")

    @staticmethod
    def pause_round(event_id: int, now, time_remaining: int | None = None) -> EventTimer:
        """Pause the current round"""
        timer = EventTimerRepository._lock_for(event_id, now, "pause")
        if timer.status != ACTIVE:
            EventTimerRepository._reject(timer, "pause")

        calculated_remaining = round_clock.remaining(
            now, timer.round_start_time, timer.round_duration
        )
        if time_remaining is None:
            effective_remaining = calculated_remaining
        else:
            # A client never gains time by reporting more than it has left
            effective_remaining = max(0, min(int(time_remaining), calculated_remaining))
        current_app.logger.info(
            f"Repository: Pausing timer for event {event_id} with {effective_remaining}s "
            f"(calculated {calculated_remaining}s, reported {time_remaining})"
        )

        timer.status = PAUSED
        timer.pause_time_remaining = effective_remaining
        timer.round_start_time = None
        return EventTimerRepository._commit(timer, "pause")

    @staticmethod
    def resume_round(event_id: int, now) -> EventTimer:
        """Resume a paused round with the time it had left when paused"""
        timer = EventTimerRepository._lock_for(event_id, now, "resume")
        if timer.status != PAUSED:
            EventTimerRepository._reject(timer, "resume")

        preserved = timer.pause_time_remaining or 0
        timer.pause_time_remaining = None
        if preserved > 0:
            timer.status = ACTIVE
            timer.round_start_time = round_clock.start_time_for_remaining(
                now, timer.round_duration, preserved
            )
        else:
            current_app.logger.info(
                f"Repository: Timer for event {event_id} was paused with no time left; ending round"
            )
            EventTimerRepository._finish_round(timer)
        return EventTimerRepository._commit(timer, "resume")

    @staticmethod
    def end_round(event_id: int, now) -> EventTimer:
        """End the running round early"""
        timer = EventTimerRepository._lock_for(event_id, now, "end")
        if timer.status != ACTIVE:
            EventTimerRepository._reject(timer, "end round")

        EventTimerRepository._finish_round(timer)
        return EventTimerRepository._commit(timer, "end")

    @staticmethod
    def next_round(event_id: int, now) -> EventTimer:
        """Start the round following a break"""
        timer = EventTimerRepository._lock_for(event_id, now, "next")
        if timer.status == ENDED:
            EventTimerRepository._reject(timer, "start next round", "All rounds completed")
        if timer.status != BREAK_TIME:
            EventTimerRepository._reject(timer, "start next round")
        if timer.current_round + 1 > timer.final_round:
            EventTimerRepository._reject(
                timer,
                "start next round",
                f"Round {timer.current_round} is the final round ({timer.final_round})",
            )

        timer.current_round += 1
        timer.status = ACTIVE
        timer.round_start_time = now
        timer.pause_time_remaining = None
        return EventTimerRepository._commit(timer, "next")

    @staticmethod
    def update_durations(
        event_id: int, now, round_duration: int | None = None, break_duration: int | None = None
    ) -> EventTimer:
        """Change round and/or break length without restarting the round.

        Elapsed time is preserved: an active round keeps its start time, a
        paused one keeps ``duration - pause_time_remaining``.
        """
        timer = EventTimerRepository._lock_for(event_id, now, "update duration")
        if timer.status == ENDED:
            EventTimerRepository._reject(timer, "update duration")

        if round_duration is not None:
            if timer.status == PAUSED and timer.pause_time_remaining is not None:
                elapsed = timer.round_duration - timer.pause_time_remaining
                timer.pause_time_remaining = max(0, round_duration - elapsed)
            timer.round_duration = round_duration
        if break_duration is not None:
            timer.break_duration = break_duration
        return EventTimerRepository._commit(timer, "update duration")

    @staticmethod
    def _lock_for(event_id: int, now, action: str) -> EventTimer:
        timer = EventTimerRepository.get_timer_for_update(event_id)
        if timer is None:
            db.session.rollback()
            # A missing record behaves as an inactive one
            raise InvalidTransitionError(action, INACTIVE, reason="Timer not initialized")
        if EventTimerRepository.apply_expiry(timer, now):
            EventTimerRepository._commit(timer, "expire")
            # The commit released the row; take it again for the transition
            timer = EventTimerRepository.get_timer_for_update(event_id)
        return timer

    @staticmethod
    def _reject(timer: EventTimer, action: str, reason: str | None = None):
        # Release the row lock before handing back the unchanged record
        db.session.commit()
        current_app.logger.warning(
            f"Repository: Rejected '{action}' for event {timer.event_id} in status {timer.status}"
        )
        raise InvalidTransitionError(action, timer.status, timer=timer, reason=reason)

    @staticmethod
    def _finish_round(timer: EventTimer):
        timer.status = ENDED if timer.is_final_round else BREAK_TIME
        timer.round_start_time = None
        timer.pause_time_remaining = None

    @staticmethod
    def _commit(timer: EventTimer, action: str) -> EventTimer:
        try:
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(
                f"Repository: Error during '{action}' for event {timer.event_id}: {str(e)}",
                exc_info=True,
            )
            raise
        current_app.logger.info(
            f"Repository: '{action}' committed for event {timer.event_id}: {timer.status}, "
            f"round {timer.current_round}/{timer.final_round}"
        )
        return timer
