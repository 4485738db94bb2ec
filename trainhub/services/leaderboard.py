from __future__ import annotations

from typing import Iterable

from trainhub.models import Student, TrainingProgress
from trainhub.services.attendance import ABSENT, ON_DUTY, PARTIAL, PRESENT, classify_day
from trainhub.utils import round_half_up


def attendance_summary(progress: TrainingProgress) -> dict:
    counts = {PRESENT: 0, ABSENT: 0, ON_DUTY: 0, PARTIAL: 0}
    for entry in progress.attendance:
        counts[classify_day(entry)] += 1
    total = len(progress.attendance)
    percentage = round_half_up(counts[PRESENT] / total * 100) if total else 0
    return {
        "present": counts[PRESENT],
        "absent": counts[ABSENT],
        "onDuty": counts[ON_DUTY],
        "partial": counts[PARTIAL],
        "total": total,
        "percentage": percentage,
    }


def student_summary(student: Student) -> dict:
    return {
        "id": student.id,
        "name": student.name,
        "regNo": student.reg_no,
        "email": student.email,
        "batch": student.batch,
        "department": student.department,
        "passoutYear": student.passout_year,
    }


def build_leaderboard(progresses: Iterable[TrainingProgress]) -> list[dict]:
    """
    Rank progress records by average score, highest first. Equal scores keep
    the order they were enumerated in; rank is the 1-based position.
    """
    ordered = sorted(progresses, key=lambda p: p.average_score or 0, reverse=True)
    return [
        {
            "rank": position,
            "student": student_summary(p.student),
            "moduleId": p.module_id,
            "venueId": p.venue_id,
            "averageScore": p.average_score or 0,
            "attendance": attendance_summary(p),
        }
        for position, p in enumerate(ordered, start=1)
    ]


def find_position(leaderboard: list[dict], student_id: int) -> dict | None:
    return next((row for row in leaderboard if row["student"]["id"] == student_id), None)
