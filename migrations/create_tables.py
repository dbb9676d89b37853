import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from roundtimer import create_app, db
import roundtimer.models  # noqa: F401


def create_tables():
    app = create_app()
    with app.app_context():
        # Create users, events and event_timers
        db.create_all()
        print(f"Created tables: {', '.join(sorted(db.metadata.tables))}")

if __name__ == "__main__":
    create_tables()
