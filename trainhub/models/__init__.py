# Re-export models so external code can keep using: from trainhub.models import Student, Module, ...
from .admin import Admin
from .student import Student, Enrollment, BATCHES, DEPARTMENTS
from .module import Module
from .venue import Venue, AssignmentStatus
from .staff import Staff
from .progress import (
    TrainingProgress,
    AttendanceEntry,
    ExamScore,
    DaySession,
    SessionMark,
)

__all__ = [
    # people
    "Admin", "Student", "Staff",
    # catalogue
    "Module", "Enrollment", "Venue", "AssignmentStatus",
    # progress
    "TrainingProgress", "AttendanceEntry", "ExamScore", "DaySession", "SessionMark",
    # enums
    "BATCHES", "DEPARTMENTS",
]
