from trainhub.config import Settings
from trainhub.extensions import Database
from seeds.setup_data import (
    seed_admin,
    seed_module,
    seed_staff,
    seed_students,
    seed_venues,
)


def main():
    settings = Settings()
    database = Database(settings.SQLALCHEMY_DATABASE_URI)
    database.drop_all()
    database.create_all()

    with database.SessionLocal() as session:
        seed_admin(session)
        venues = seed_venues(session)
        seed_staff(session, venues)
        students = seed_students(session)
        seed_module(session, students, next(iter(venues.values())))

    print("Database seeded. Admin login: admin@example.com / Admin123!")


if __name__ == '__main__':
    main()
