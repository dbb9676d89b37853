from roundtimer.extensions import db
from roundtimer.models.enums import TimerStatus
from roundtimer import round_clock


class EventTimer(db.Model):
    __tablename__ = 'event_timers'

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False, unique=True)
    status = db.Column(db.String(20), nullable=False, default=TimerStatus.INACTIVE.value)
    current_round = db.Column(db.Integer, nullable=False, default=0)
    final_round = db.Column(db.Integer, nullable=False, default=1)
    round_duration = db.Column(db.Integer, nullable=False, default=180)  # Duration in seconds
    round_start_time = db.Column(db.TIMESTAMP(timezone=True), nullable=True)  # Only while active
    pause_time_remaining = db.Column(db.Integer, nullable=True)  # Seconds remaining when paused
    break_duration = db.Column(db.Integer, nullable=False, default=90)  # Informational, breaks are not timed
    created_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    # Define relationship
    event = db.relationship('Event', backref=db.backref('timer', uselist=False))

    @property
    def timer_status(self) -> TimerStatus:
        return TimerStatus(self.status)

    @property
    def is_final_round(self) -> bool:
        return self.current_round >= self.final_round

    def time_remaining(self, now) -> int:
        """Seconds left in the current round as of ``now``."""
        if self.status == TimerStatus.ACTIVE.value and self.round_start_time is not None:
            return round_clock.remaining(now, self.round_start_time, self.round_duration)
        if self.status == TimerStatus.PAUSED.value:
            return self.pause_time_remaining or 0
        return 0

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'status': self.status,
            'current_round': self.current_round,
            'final_round': self.final_round,
            'round_duration': self.round_duration,
            'break_duration': self.break_duration,
            'round_start_time': round_clock.format_timestamp(self.round_start_time),
            'pause_time_remaining': self.pause_time_remaining,
        }

    def __repr__(self):
        return (
            f"EventTimer(event_id={self.event_id}, status={self.status}, "
            f"round={self.current_round}/{self.final_round})"
        )
