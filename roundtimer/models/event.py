from roundtimer.extensions import db
from .enums import LIVE_EVENT_STATUSES


class Event(db.Model):
    """The slice of an event the round timer depends on.

    Registration, capacity and payment fields belong to the event service
    and are not modeled here.
    """

    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(
        db.String(20),
        nullable=False,
    )
    num_rounds = db.Column(db.Integer, nullable=True)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_live(self):
        return self.status in LIVE_EVENT_STATUSES

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "creator_id": self.creator_id,
            "status": self.status,
            "num_rounds": self.num_rounds,
        }
