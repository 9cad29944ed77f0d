"""
Seed script for the ShiftDesk development database.

- Two bureaus: Milan and Rome (both Europe/Rome)
- Milan: 1 lead, 2 seniors, 3 juniors. Rome: 1 lead, 1 senior, 2 juniors
- One admin and one scheduler (all bureaus)
- Preferences for every employee, some still pending confirmation
- One approved leave next week, no existing shifts

Run with: python -m scripts.seed_newsroom
"""

import sys
from datetime import date, timedelta
from sqlalchemy import text
from app.db.database import SessionLocal, engine
from app.core.security import get_password_hash
from app.db.models import (
    Base,
    Bureaus,
    DEFAULT_BUREAU_SETTINGS,
    Employees,
    EmploymentStatus,
    Role,
    ShiftPreferences,
    ShiftRoleLevel,
    TimeOffReason,
    TimeOffRequests,
    TimeOffStatus,
    UserRoles,
    Users,
)

MILAN_ID = 1
ROME_ID = 2

# (user id, firstname, surname, bureau, role level, title, preferred days, preferred shifts, confirmed)
STAFF = [
    (10, "Giulia", "Romano", MILAN_ID, ShiftRoleLevel.LEAD, "Bureau Chief", [0, 1, 2, 3, 4], ["Morning"], True),
    (11, "Marco", "Rossi", MILAN_ID, ShiftRoleLevel.SENIOR, "Senior Correspondent", [0, 1, 2, 3, 4], ["Morning", "Afternoon"], True),
    (12, "Chiara", "Ricci", MILAN_ID, ShiftRoleLevel.SENIOR, "Senior Correspondent", [], ["Night"], False),
    (13, "Sara", "Bianchi", MILAN_ID, ShiftRoleLevel.JUNIOR, "Correspondent", [0, 1, 2, 3, 4], ["Morning"], True),
    (14, "Luca", "Verdi", MILAN_ID, ShiftRoleLevel.JUNIOR, "Correspondent", [], [], False),
    (15, "Davide", "Marino", MILAN_ID, ShiftRoleLevel.JUNIOR, "Correspondent", [2, 3, 4, 5, 6], ["Afternoon"], True),
    (20, "Gavin", "Jones", ROME_ID, ShiftRoleLevel.LEAD, "Editor", [0, 1, 2, 3, 4], ["Morning"], True),
    (21, "Alessia", "Conti", ROME_ID, ShiftRoleLevel.SENIOR, "Senior Correspondent", [], ["Afternoon", "Night"], True),
    (22, "Paolo", "Greco", ROME_ID, ShiftRoleLevel.JUNIOR, "Correspondent", [], [], False),
    (23, "Elisa", "Gallo", ROME_ID, ShiftRoleLevel.JUNIOR, "Correspondent", [4, 5, 6], ["Night"], True),
]


def truncate_tables(db):
    """Truncate all scheduling tables in dependency order."""
    print("Truncating tables...")

    tables_to_truncate = [
        "conflicts",
        "shift_assignments",
        "shifts",
        "time_off_requests",
        "shift_preferences",
        "employees",
        "user_roles",
        "bureaus",
        "users",
    ]

    for table in tables_to_truncate:
        db.execute(text(f"TRUNCATE TABLE {table} RESTART IDENTITY CASCADE;"))

    db.commit()
    print("All tables truncated.")


def reset_sequences(db):
    """Reset sequences to start after our seeded IDs."""
    print("Resetting sequences...")

    for table in ["users", "bureaus", "employees", "user_roles", "shift_preferences", "time_off_requests"]:
        db.execute(text(f"SELECT setval('{table}_id_seq', (SELECT COALESCE(MAX(id), 1) FROM {table}));"))

    db.commit()
    print("Sequences reset.")


def get_next_week_monday():
    today = date.today()
    return today - timedelta(days=today.weekday()) + timedelta(days=7)


def seed_bureaus(db):
    print("Seeding bureaus...")
    db.add_all([
        Bureaus(id=MILAN_ID, name="Milan", code="MIL", timezone="Europe/Rome", settings=dict(DEFAULT_BUREAU_SETTINGS)),
        Bureaus(id=ROME_ID, name="Rome", code="ROM", timezone="Europe/Rome", settings=dict(DEFAULT_BUREAU_SETTINGS)),
    ])
    db.commit()
    print("Seeded 2 bureaus.")


def seed_users(db):
    """Seed admin, scheduler and one user per staff member."""
    print("Seeding users...")

    users = [
        Users(id=1, email="admin@shiftdesk.dev", firstname="Admin", surname="User",
              password_hash=get_password_hash("admin123")),
        Users(id=2, email="scheduler@shiftdesk.dev", firstname="Elena", surname="Ferri",
              password_hash=get_password_hash("scheduler123")),
    ]
    for user_id, firstname, surname, *_ in STAFF:
        users.append(Users(
            id=user_id,
            email=f"{firstname.lower()}.{surname.lower()}@shiftdesk.dev",
            firstname=firstname,
            surname=surname,
            password_hash=get_password_hash("staff123"),
        ))

    db.add_all(users)
    db.commit()
    print(f"Seeded {len(users)} users.")


def seed_user_roles(db):
    print("Seeding user roles...")

    roles = [
        UserRoles(user_id=1, bureau_id=None, role=Role.ADMIN),
        UserRoles(user_id=2, bureau_id=None, role=Role.SCHEDULER),
    ]
    for user_id, _, _, bureau_id, level, *_ in STAFF:
        role = Role.MANAGER if level == ShiftRoleLevel.LEAD else Role.STAFF
        roles.append(UserRoles(user_id=user_id, bureau_id=bureau_id, role=role))

    db.add_all(roles)
    db.commit()
    print(f"Seeded {len(roles)} user roles.")


def seed_employees(db):
    """Employee ids match user ids to keep the seed readable."""
    print("Seeding employees...")

    for user_id, _, _, bureau_id, level, title, *_ in STAFF:
        db.add(Employees(
            id=user_id,
            user_id=user_id,
            bureau_id=bureau_id,
            title=title,
            shift_role=level,
            employment_status=EmploymentStatus.ACTIVE,
        ))
    db.commit()
    print(f"Seeded {len(STAFF)} employees.")


def seed_preferences(db):
    print("Seeding shift preferences...")

    for user_id, _, _, _, _, _, days, shifts, confirmed in STAFF:
        db.add(ShiftPreferences(
            employee_id=user_id,
            preferred_days=days,
            preferred_shifts=shifts,
            unavailable_dates=[],
            max_shifts_per_week=5,
            confirmed=confirmed,
            confirmed_by_user_id=2 if confirmed else None,
        ))
    db.commit()
    print(f"Seeded {len(STAFF)} preference sets.")


def seed_time_off_requests(db):
    print("Seeding time off requests...")

    wednesday = get_next_week_monday() + timedelta(days=2)
    db.add(TimeOffRequests(
        employee_id=14,
        start_date=wednesday,
        end_date=wednesday + timedelta(days=1),
        status=TimeOffStatus.APPROVED,
        reason_type=TimeOffReason.VACATION,
    ))
    db.commit()
    print("Seeded 1 time off request.")


def main():
    """Main seed function."""
    print("\n" + "="*50)
    print("ShiftDesk Database Seeder")
    print("="*50 + "\n")

    response = input("This will DELETE ALL EXISTING DATA. Continue? (yes/no): ")
    if response.lower() != "yes":
        print("Aborted.")
        sys.exit(0)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        truncate_tables(db)

        seed_bureaus(db)
        seed_users(db)
        seed_user_roles(db)
        seed_employees(db)
        seed_preferences(db)
        seed_time_off_requests(db)

        reset_sequences(db)

        print("\n" + "="*50)
        print("Seeding complete!")
        print("="*50)
        print("\nTest accounts:")
        print("  Admin:     admin@shiftdesk.dev / admin123")
        print("  Scheduler: scheduler@shiftdesk.dev / scheduler123")
        print("  Staff:     marco.rossi@shiftdesk.dev / staff123")
        print("             (every staff member follows the same pattern)")
        print("\nRoster:")
        for user_id, firstname, surname, bureau_id, level, *_ in STAFF:
            bureau = "Milan" if bureau_id == MILAN_ID else "Rome"
            print(f"  {user_id} - {firstname} {surname} ({bureau}, {level.value.lower()})")
        print(f"\nLuca Verdi is on leave from {get_next_week_monday() + timedelta(days=2)} for 2 days")
        print("="*50 + "\n")

    except Exception as e:
        db.rollback()
        print(f"\nError during seeding: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
