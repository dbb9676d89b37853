from roundtimer.extensions import db
from .enums import UserRole


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    role_id = db.Column(db.Integer, nullable=False, default=UserRole.USER.value)
    email = db.Column(db.String(255), unique=True, nullable=False)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    updated_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    created_at = db.Column(db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def is_admin(self):
        return self.role_id == UserRole.ADMIN.value

    def can_manage_timer(self, event) -> bool:
        """Admins manage every event's timer; organizers only their own."""
        if self.is_admin:
            return True
        return self.role_id == UserRole.ORGANIZER.value and str(event.creator_id) == str(self.id)

    def to_dict(self):
        return {
            'id': self.id,
            'role_id': self.role_id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return (
            f"User("
            f"id={self.id}, "
            f"role_id={self.role_id}, "
            f"email='{self.email}'"
            f")"
        )
