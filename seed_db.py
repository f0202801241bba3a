import os
from sportclub import create_app, db
from sportclub.models import Club, User, Coach, Category, UserRole
from config import config

DEFAULT_CATEGORIES = [
    'Baby foot', 'U6', 'U7', 'U8', 'U9', 'U10',
    'U11', 'U12', 'U13', 'U14', 'U15', 'U16',
    'U17', 'U18', 'U19', 'Séniors'
]


def get_or_create_user(email, name, role, password, club):
    user = User.find_by_email(email)
    if user:
        print(f"User {email} already exists")
        return user

    user = User(email=email, name=name, role=role, club_id=club.id, email_verified=True)
    user.set_password(password)
    db.session.add(user)
    print(f"Created {role.value}: {email} / {password}")
    return user


def seed_database():
    """Create the demo club with an admin, a coach and the default categories. Safe to re-run."""
    env = os.getenv('FLASK_ENV', 'development')
    app = create_app(config[env])
    with app.app_context():
        try:
            club = Club.query.filter_by(name='Linas').first()
            if not club:
                club = Club(name='Linas')
                db.session.add(club)
                db.session.flush()
                print("Created club Linas")

            get_or_create_user(
                os.getenv('SEED_ADMIN_EMAIL', 'admin@sportemergence.com'),
                'Dirigeant',
                UserRole.ADMIN,
                os.getenv('SEED_ADMIN_PASSWORD', 'admin123'),
                club
            )

            coach_user = get_or_create_user(
                os.getenv('SEED_COACH_EMAIL', 'coach@sportemergence.com'),
                'Coach Démo',
                UserRole.COACH,
                os.getenv('SEED_COACH_PASSWORD', 'coach123'),
                club
            )
            if not coach_user.coach_profile:
                coach_user.coach_profile = Coach(
                    bio='Coach de démonstration',
                    qualifications="Diplôme d'État"
                )

            existing = {c.name for c in Category.query.filter_by(club_id=club.id)}
            created = 0
            for name in DEFAULT_CATEGORIES:
                if name not in existing:
                    db.session.add(Category(name=name, club_id=club.id))
                    created += 1

            db.session.commit()
            print("Successfully seeded database with:",
                  f"\n- 1 Club (Linas)",
                  f"\n- {created} new categories ({len(DEFAULT_CATEGORIES)} in total)")

        except Exception as e:
            db.session.rollback()
            print(f"Error seeding database: {str(e)}")
            raise


if __name__ == '__main__':
    seed_database()
