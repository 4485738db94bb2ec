from __future__ import annotations

from typing import Dict, List

from sqlalchemy.orm import Session

from trainhub.models import Admin, Enrollment, Module, Staff, Student, Venue
from trainhub.security import hash_password
from trainhub.services.assignment import assign_staff
from trainhub.services.enrollment import new_progress

from seeds.utils import get_or_create

VENUE_FIXTURES: List[Dict] = [
    {"name": "Main Block Lab 1", "capacity": 60},
    {"name": "Main Block Lab 2", "capacity": 60},
    {"name": "Library Seminar Hall", "capacity": 120},
]

STAFF_FIXTURES: List[Dict] = [
    {"name": "Priya Raman", "email": "priya@example.com"},
    {"name": "Arun Kumar", "email": "arun@example.com"},
]

STUDENT_FIXTURES: List[Dict] = [
    {"name": "Aditi S", "reg_no": "21CS001", "email": "aditi@example.com", "batch": "Dream", "department": "CSE"},
    {"name": "Bala M", "reg_no": "21CS002", "email": "bala@example.com", "batch": "Service", "department": "CSE"},
    {"name": "Charan K", "reg_no": "21IT003", "email": "charan@example.com", "batch": "Super Dream", "department": "IT"},
    {"name": "Divya R", "reg_no": "21EC004", "email": "divya@example.com", "batch": "Marquee", "department": "ECE"},
]


def seed_admin(session: Session) -> Admin:
    admin, _ = get_or_create(
        session,
        Admin,
        email="admin@example.com",
        defaults={"name": "Admin", "password_hash": hash_password("Admin123!")},
    )
    session.commit()
    return admin


def seed_venues(session: Session) -> Dict[str, Venue]:
    venues = {}
    for data in VENUE_FIXTURES:
        venue, _ = get_or_create(session, Venue, name=data["name"], defaults={"capacity": data["capacity"]})
        venues[venue.name] = venue
    session.commit()
    return venues


def seed_staff(session: Session, venues: Dict[str, Venue]) -> List[Staff]:
    staff_members = []
    for data, venue in zip(STAFF_FIXTURES, venues.values()):
        staff, created = get_or_create(
            session,
            Staff,
            email=data["email"],
            defaults={"name": data["name"], "password_hash": hash_password("Staff123!")},
        )
        session.commit()
        if created:
            assign_staff(session, staff.id, venue.id)
        staff_members.append(staff)
    return staff_members


def seed_students(session: Session, passout_year: int = 2025) -> List[Student]:
    students = []
    for data in STUDENT_FIXTURES:
        student, _ = get_or_create(
            session,
            Student,
            reg_no=data["reg_no"],
            defaults={
                "name": data["name"],
                "email": data["email"],
                "batch": data["batch"],
                "department": data["department"],
                "passout_year": passout_year,
                "password_hash": hash_password("Student123!"),
            },
        )
        students.append(student)
    session.commit()
    return students


def seed_module(session: Session, students: List[Student], venue: Venue) -> Module:
    module, created = get_or_create(
        session,
        Module,
        title="Aptitude & Problem Solving",
        defaults={"description": "Quantitative aptitude and coding drills", "duration_days": 10, "exams_count": 3},
    )
    if created:
        for student in students:
            student.enrollments.append(Enrollment(module=module))
            session.add(new_progress(student, module, venue))
    session.commit()
    return module
