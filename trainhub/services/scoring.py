from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from trainhub.exceptions import NotFoundError, ValidationError
from trainhub.models import Module, Student, TrainingProgress
from trainhub.utils import as_exam_index, cell_text

log = logging.getLogger(__name__)

SCORE_COLUMNS = {"regno", "name", "mark"}


def recompute_average(progress: TrainingProgress) -> float:
    """Mean over every exam entry; ungraded exams hold 0 and still count."""
    scores = [s.score or 0 for s in progress.exam_scores]
    progress.average_score = sum(scores) / len(scores) if scores else 0
    return progress.average_score


def find_progress(session: Session, student_id: int, module_id: int) -> TrainingProgress | None:
    return (
        session.query(TrainingProgress)
        .options(selectinload(TrainingProgress.exam_scores))
        .filter_by(student_id=student_id, module_id=module_id)
        .first()
    )


def apply_score(progress: TrainingProgress, exam_index: Any, score: float) -> bool:
    """Overwrite one exam's score and refresh the average. False if the exam is unknown."""
    index = as_exam_index(exam_index)
    entry = progress.exam(index) if index is not None else None
    if entry is None:
        return False
    entry.score = score
    recompute_average(progress)
    progress.touch()
    return True


def update_single_score(
    session: Session, *, student_id: int, module_id: int, exam_index: Any, score: float
) -> TrainingProgress:
    """Individual score entry; the value is stored as given."""
    if not math.isfinite(score):
        raise ValidationError("Score must be a finite number")
    student = session.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    progress = find_progress(session, student_id, module_id)
    if not progress:
        raise NotFoundError("Training progress not found for this student and module")
    if not apply_score(progress, exam_index, score):
        raise NotFoundError(f"Exam {exam_index} not found for this module")
    session.commit()
    return progress


@dataclass
class ScoreUploadResult:
    total: int = 0
    successes: list[dict] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "succeeded": len(self.successes),
            "failed": len(self.failures),
            "successes": self.successes,
            "failures": self.failures,
        }


def read_score_sheet(df: pd.DataFrame) -> pd.DataFrame:
    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = SCORE_COLUMNS - set(df.columns)
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(sorted(missing))}")
    return df


def upload_scores(
    session: Session,
    *,
    module_id: int,
    exam_index: Any,
    rows: pd.DataFrame,
    multiplier: float = 2,
) -> ScoreUploadResult:
    """
    Bulk score upload for one exam of a module. Each row's raw mark is scaled by
    `multiplier` before storing. Rows fail independently; successful rows stay.
    """
    if not session.get(Module, module_id):
        raise NotFoundError("Module not found")
    if as_exam_index(exam_index) is None:
        raise ValidationError(f"Invalid exam index: {exam_index!r}")
    rows = read_score_sheet(rows)

    result = ScoreUploadResult()
    for position, (_, row) in enumerate(rows.iterrows(), start=2):
        reg_no = cell_text(row, "regno")
        if not reg_no and not cell_text(row, "mark"):
            continue
        result.total += 1

        def fail(reason: str) -> None:
            result.failures.append({"row": position, "regNo": reg_no, "reason": reason})

        try:
            raw_mark = float(cell_text(row, "mark"))
        except ValueError:
            raw_mark = math.nan
        if not math.isfinite(raw_mark):
            fail("Invalid mark")
            continue

        student = session.query(Student).filter_by(reg_no=reg_no).first() if reg_no else None
        if not student:
            fail("Student not found")
            continue
        progress = find_progress(session, student.id, module_id)
        if not progress:
            fail("Training progress not found")
            continue

        stored = raw_mark * multiplier
        try:
            if not apply_score(progress, exam_index, stored):
                fail(f"Exam {exam_index} not found")
                continue
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            log.warning("Score write failed for %s: %s", reg_no, e)
            fail(str(e))
            continue

        result.successes.append(
            {
                "regNo": student.reg_no,
                "name": cell_text(row, "name") or student.name,
                "score": stored,
                "averageScore": progress.average_score,
            }
        )

    log.info(
        "Score upload module=%s exam=%s: %d/%d rows stored",
        module_id, exam_index, len(result.successes), result.total,
    )
    return result
