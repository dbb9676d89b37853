from roundtimer import create_app
from roundtimer.models import User, UserRole
from roundtimer.extensions import db
from roundtimer.repositories.user_repository import UserRepository
from flask_jwt_extended import create_access_token

def create_admin_user(update=False):
    app = create_app()
    with app.app_context():
        # Check if admin already exists
        admin = UserRepository.find_by_email('admin@example.com')
        if not admin:
            admin = User(
                email='admin@example.com',
                role_id=UserRole.ADMIN.value,
                first_name='Admin',
                last_name='User',
            )
            UserRepository.create_user(admin)
            print("Admin user created successfully!")
        elif update:
            admin.role_id = UserRole.ADMIN.value
            db.session.commit()
            print("Admin user updated successfully!")
        else:
            print("Admin user already exists!")

        # Bearer token for the timer API (ROUNDTIMER_TOKEN)
        print(create_access_token(identity=str(admin.id)))

if __name__ == '__main__':
    create_admin_user(update=True)
