"""
Database Initialization and Seed Data

1. Tests database connectivity
2. Creates any missing tables
3. Creates the supervisor account if there is none
4. Optionally adds a handful of sample students

Usage:
    python -m app.db.seed_data                 # tables + supervisor
    python -m app.db.seed_data --check         # only check connectivity
    python -m app.db.seed_data --sample-data   # also add sample students
    studenttrack-init-db --supervisor-password 's3cret!'
"""
import argparse
import asyncio
import sys
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import Database
from app.models.user import User, UserRole
from app.models.student import Student, StudentStatus
from app.services.user_service import UserService


# ==================== Sample Data Constants ====================

SAMPLE_STUDENTS = [
    {"name": "Aarav Sharma", "email": "aarav.sharma@example.com", "department": "Computer Science", "status": StudentStatus.ACTIVE, "gpa": 3.62},
    {"name": "Diya Patel", "email": "diya.patel@example.com", "department": "Mathematics", "status": StudentStatus.ACTIVE, "gpa": 3.88},
    {"name": "Kabir Rao", "email": "kabir.rao@example.com", "department": "Physics", "status": StudentStatus.INACTIVE, "gpa": 2.95},
    {"name": "Meera Iyer", "email": "meera.iyer@example.com", "department": "Computer Science", "status": StudentStatus.GRADUATED, "gpa": 3.71},
    {"name": "Rohan Gupta", "email": "rohan.gupta@example.com", "department": "Electrical Engineering", "status": StudentStatus.ACTIVE, "gpa": None},
]


async def seed_supervisor(
    db: AsyncSession,
    username: str,
    email: str,
    password: str
) -> Tuple[User, bool]:
    """Create the supervisor unless one exists. Returns (supervisor, created)."""
    existing = await db.scalar(select(User).where(User.role == UserRole.SUPERVISOR).limit(1))
    if existing is not None:
        print(f"[InitDB] Supervisor already exists ({existing.username})")
        return existing, False

    if not password:
        raise ValueError("A supervisor password is required (SUPERVISOR_PASSWORD or --supervisor-password)")

    supervisor = await UserService(db).create_supervisor(username, email, password)
    print(f"[InitDB] Supervisor created (username: {supervisor.username})")
    return supervisor, True


async def seed_sample_students(db: AsyncSession) -> List[Student]:
    """Add the sample students whose emails are not taken yet"""
    created = []
    for data in SAMPLE_STUDENTS:
        taken = await db.scalar(select(func.count(Student.id)).where(Student.email == data["email"]))
        if taken:
            continue
        student = Student(**data)
        db.add(student)
        created.append(student)
    await db.commit()
    print(f"[InitDB] Created {len(created)} sample students")
    return created


async def init_database(
    database: Database,
    username: str,
    email: str,
    password: str,
    sample_data: bool = False
) -> None:
    print("=" * 50)
    print("[InitDB] Initializing database...")
    print("=" * 50)

    await database.create_all()
    print("[InitDB] Database tables created/verified!")

    async with database.session() as db:
        await seed_supervisor(db, username, email, password)
        if sample_data:
            await seed_sample_students(db)

    print("=" * 50)
    print("[InitDB] Done.")
    print("=" * 50)


async def check_connection(database: Database) -> bool:
    print("\n[InitDB] Testing database connection...")
    try:
        await database.ping()
    except Exception as e:
        print(f"[InitDB] ERROR: Database connection failed: {e}")
        return False
    print("[InitDB] Database connection successful!")
    return True


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Initialize the StudentTrack database")
    parser.add_argument("--check", action="store_true", help="Only check database connectivity")
    parser.add_argument("--sample-data", action="store_true", help="Also create sample students")
    parser.add_argument("--supervisor-username", default=settings.SUPERVISOR_USERNAME)
    parser.add_argument("--supervisor-email", default=settings.SUPERVISOR_EMAIL)
    parser.add_argument("--supervisor-password", default=settings.SUPERVISOR_PASSWORD)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    database = Database()
    database.connect()
    try:
        if not await check_connection(database):
            return 1
        if args.check:
            return 0
        await init_database(
            database,
            username=args.supervisor_username,
            email=args.supervisor_email,
            password=args.supervisor_password,
            sample_data=args.sample_data,
        )
        return 0
    except ValueError as e:
        print(f"[InitDB] ERROR: {e}")
        return 1
    finally:
        await database.dispose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
