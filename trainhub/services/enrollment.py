from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trainhub.exceptions import NotFoundError, ValidationError
from trainhub.models import Enrollment, ExamScore, Module, Student, TrainingProgress, Venue

log = logging.getLogger(__name__)


def new_progress(student: Student, module: Module, venue: Venue | None) -> TrainingProgress:
    """A progress record with one zero score per expected exam."""
    progress = TrainingProgress(student=student, module=module, venue=venue, average_score=0)
    for index in range(1, (module.exams_count or 0) + 1):
        progress.exam_scores.append(ExamScore(exam=index, score=0))
    return progress


def assign_module(session: Session, module_id: int, assignments: Iterable) -> dict:
    """
    Enroll students in a module at the given venues. `assignments` pairs a venue
    id with student ids; existing (student, module) progress is left as is.
    """
    module = session.get(Module, module_id)
    if not module:
        raise NotFoundError("Module not found")

    pairs: list[tuple[Venue, int]] = []
    for item in assignments:
        venue = session.get(Venue, item.venue_id)
        if not venue:
            raise ValidationError(f"Unknown venue id: {item.venue_id}")
        pairs.extend((venue, sid) for sid in dict.fromkeys(item.student_ids))

    results = []
    for venue, student_id in pairs:
        student = session.get(Student, student_id)
        if not student:
            results.append({"studentId": student_id, "status": "failed", "reason": "Student not found"})
            continue
        existing = (
            session.query(TrainingProgress)
            .filter_by(student_id=student.id, module_id=module.id)
            .first()
        )
        if existing:
            results.append({"studentId": student_id, "status": "exists", "progressId": existing.id})
            continue
        try:
            if not student.is_enrolled(module.id):
                student.enrollments.append(Enrollment(module=module))
            progress = new_progress(student, module, venue)
            session.add(progress)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            log.warning("Module assignment failed for student %s: %s", student_id, e)
            results.append({"studentId": student_id, "status": "failed", "reason": str(e)})
            continue
        results.append(
            {"studentId": student_id, "status": "created", "progressId": progress.id, "venueId": venue.id}
        )

    created = sum(1 for r in results if r["status"] == "created")
    log.info("Assigned module %s: %d created of %d", module.id, created, len(results))
    return {
        "moduleId": module.id,
        "total": len(results),
        "created": created,
        "existing": sum(1 for r in results if r["status"] == "exists"),
        "failed": sum(1 for r in results if r["status"] == "failed"),
        "results": results,
    }
