"""
Script to create demo accounts and a live demo event for the round timer.
"""

from roundtimer import create_app
from roundtimer.models import User, Event, EventStatus, UserRole
from roundtimer.extensions import db
from roundtimer.repositories.user_repository import UserRepository
from flask_jwt_extended import create_access_token

DEMO_USERS = [
    ("organizer@example.com", "Olivia", "Organizer", UserRole.ORGANIZER),
    ("attendee@example.com", "Adam", "Attendee", UserRole.USER),
]


def main():
    """Create or update demo accounts and print a token for each."""
    app = create_app()
    with app.app_context():
        users = {}
        for email, first_name, last_name, role in DEMO_USERS:
            user = UserRepository.find_by_email(email)
            if not user:
                user = UserRepository.create_user(
                    User(email=email, first_name=first_name, last_name=last_name, role_id=role.value)
                )
                print(f"Created {role.name.lower()} account {email}")
            users[role] = user

        organizer = users[UserRole.ORGANIZER]
        event = Event.query.filter_by(name="Demo Rounds", creator_id=organizer.id).first()
        if not event:
            event = Event(
                name="Demo Rounds",
                creator_id=organizer.id,
                status=EventStatus.IN_PROGRESS.value,
                num_rounds=3,
            )
            db.session.add(event)
            db.session.commit()
            print(f"Created live demo event {event.id} with {event.num_rounds} rounds")

        for role, user in users.items():
            print(f"{role.name.lower()} token: {create_access_token(identity=str(user.id))}")
        print(f"Watch it with: python scripts/watch_timer.py --event-id {event.id} --token <token>")


if __name__ == "__main__":
    main()
