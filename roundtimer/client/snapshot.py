from dataclasses import dataclass, replace
from datetime import datetime

from roundtimer import round_clock
from roundtimer.models.enums import TimerStatus

ACTIVE = TimerStatus.ACTIVE.value
PAUSED = TimerStatus.PAUSED.value
BREAK_TIME = TimerStatus.BREAK_TIME.value
ENDED = TimerStatus.ENDED.value
INACTIVE = TimerStatus.INACTIVE.value


@dataclass(frozen=True)
class TimerSnapshot:
    """One immutable read of the authority's timer record."""

    event_id: int
    has_timer: bool
    status: str
    current_round: int = 0
    final_round: int = 1
    round_duration: int = 0
    break_duration: int = 0
    round_start_time: datetime | None = None
    pause_time_remaining: int | None = None
    time_remaining: int = 0
    server_time: datetime | None = None
    message: str | None = None

    @classmethod
    def from_payload(cls, event_id: int, payload: dict) -> "TimerSnapshot":
        timer = payload.get("timer") or {}
        status = payload.get("status") or timer.get("status") or INACTIVE
        if status not in {s.value for s in TimerStatus}:
            # Unknown or error statuses are shown as a timer that is not running
            status = INACTIVE
        return cls(
            event_id=int(timer.get("event_id", event_id)),
            has_timer=bool(payload.get("has_timer", bool(timer))),
            status=status,
            current_round=int(timer.get("current_round") or 0),
            final_round=int(timer.get("final_round") or 1),
            round_duration=int(timer.get("round_duration") or 0),
            break_duration=int(timer.get("break_duration") or 0),
            round_start_time=round_clock.parse_timestamp(timer.get("round_start_time")),
            pause_time_remaining=timer.get("pause_time_remaining"),
            time_remaining=int(payload.get("time_remaining") or 0),
            server_time=round_clock.parse_timestamp(payload.get("server_time")),
            message=payload.get("message"),
        )


@dataclass(frozen=True)
class ClientTimerView:
    """What a client displays: status, countdown and round.

    ``revision`` increases with every authoritative snapshot applied, so a
    countdown started for an older snapshot can tell that it is stale.
    """

    event_id: int
    status: str = INACTIVE
    seconds_remaining: int = 0
    current_round: int = 0
    final_round: int = 1
    round_duration: int = 0
    break_duration: int = 0
    has_timer: bool = False
    source: str = "initial"
    revision: int = 0

    @property
    def is_counting_down(self) -> bool:
        return self.status == ACTIVE and self.seconds_remaining > 0

    @property
    def driving_key(self) -> tuple:
        return (self.status, self.current_round, self.seconds_remaining, self.revision)

    @property
    def expired_status(self) -> str:
        """Status the round falls into once its time is up."""
        return ENDED if self.current_round >= self.final_round else BREAK_TIME

    def evolve(self, **changes) -> "ClientTimerView":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "status": self.status,
            "seconds_remaining": self.seconds_remaining,
            "current_round": self.current_round,
            "final_round": self.final_round,
            "round_duration": self.round_duration,
            "break_duration": self.break_duration,
            "has_timer": self.has_timer,
        }

    @classmethod
    def from_dict(cls, data: dict, source: str = "recovery") -> "ClientTimerView":
        return cls(
            event_id=int(data["event_id"]),
            status=data.get("status", INACTIVE),
            seconds_remaining=max(0, int(data.get("seconds_remaining", 0))),
            current_round=int(data.get("current_round", 0)),
            final_round=int(data.get("final_round", 1)),
            round_duration=int(data.get("round_duration", 0)),
            break_duration=int(data.get("break_duration", 0)),
            has_timer=bool(data.get("has_timer", False)),
            source=source,
        )
