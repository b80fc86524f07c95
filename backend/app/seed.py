from __future__ import annotations

import argparse

from sqlalchemy.orm import Session

from app.core.security import get_password_hash
from app.core.settings import settings
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.admin import Admin
from app.models.department import Department
from app.models.enums import DepartmentType, Role
from app.models.user import User

DEMO_PASSWORD = "password"

DEMO_USERS = (
    ("Dr. Ada Rao", "ada.rao@university.edu", Role.PROFESSOR),
    ("Dr. Ben Iyer", "ben.iyer@university.edu", Role.PROFESSOR),
    ("Prof. Chitra Nair", "chitra.nair@university.edu", Role.HOD),
    ("Dev Student", "dev.student@university.edu", Role.STUDENT),
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the database with a demo department and users")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables before seeding")
    return parser.parse_args()


def _seed(db: Session) -> None:
    db.add(Admin(email="admin@university.edu", hashed_password=get_password_hash(DEMO_PASSWORD)))
    department = Department(name="Computer Science", type=DepartmentType.UG, address="Block A, Main Campus")
    db.add(department)
    db.flush()
    for name, email, role in DEMO_USERS:
        db.add(
            User(
                name=name,
                email=email,
                role=role,
                hashed_password=get_password_hash(DEMO_PASSWORD),
                department_id=department.id,
            )
        )


def main() -> None:
    args = parse_args()
    if settings.is_production:
        raise RuntimeError("Refusing to seed a production database")
    if args.reset:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        if db.query(Department).count():
            print("Seed appears to have already run. Use --reset to reseed.")
            return
        _seed(db)
        db.commit()
        print("Seed complete.")
        print(f"Admin login: admin@university.edu / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
