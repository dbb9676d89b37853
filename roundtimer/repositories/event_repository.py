from roundtimer.models import Event


class EventRepository:
    @staticmethod
    def get_event(event_id: int) -> Event | None:
        return Event.query.filter_by(id=event_id).first()
