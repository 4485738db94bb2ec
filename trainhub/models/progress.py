from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from trainhub.extensions import db


class DaySession(str, Enum):
    FORENOON = "forenoon"
    AFTERNOON = "afternoon"


@dataclass(frozen=True)
class SessionMark:
    """A recorded session. An unrecorded session is represented by None."""

    present: bool
    on_duty: bool
    notified: bool = False

    @property
    def is_absent(self) -> bool:
        return not self.present and not self.on_duty

    def merged(self, present: bool, on_duty: bool) -> "SessionMark":
        # Keeps the notified flag; only the observation is replaced.
        return replace(self, present=present, on_duty=on_duty)


class TrainingProgress(db.Model):
    __tablename__ = "training_progress"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    module_id = db.Column(db.Integer, db.ForeignKey("modules.id"), nullable=False)
    venue_id = db.Column(db.Integer, db.ForeignKey("venues.id"), nullable=True)
    average_score = db.Column(db.Float, nullable=False, default=0)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    student = db.relationship("Student", back_populates="progress")
    module = db.relationship("Module")
    venue = db.relationship("Venue")
    attendance = db.relationship(
        "AttendanceEntry",
        back_populates="progress",
        order_by="AttendanceEntry.id",
        cascade="all, delete-orphan",
    )
    exam_scores = db.relationship(
        "ExamScore",
        back_populates="progress",
        order_by="ExamScore.exam",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        db.UniqueConstraint("student_id", "module_id", name="uq_progress_student_module"),
        db.Index("ix_progress_venue", "venue_id"),
        db.Index("ix_progress_module", "module_id"),
    )

    def entry_for(self, day) -> Optional["AttendanceEntry"]:
        for entry in self.attendance:
            if entry.date == day:
                return entry
        return None

    def exam(self, index) -> Optional["ExamScore"]:
        for score in self.exam_scores:
            if score.exam == index:
                return score
        return None

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    def __repr__(self):
        return f"<TrainingProgress id={self.id} student_id={self.student_id} module_id={self.module_id}>"


class AttendanceEntry(db.Model):
    __tablename__ = "attendance_entries"

    id = db.Column(db.Integer, primary_key=True)
    progress_id = db.Column(
        db.Integer, db.ForeignKey("training_progress.id", ondelete="CASCADE"), nullable=False
    )
    date = db.Column(db.Date, nullable=False)

    # NULL present columns mean the session has not been recorded.
    forenoon_present = db.Column(db.Boolean, nullable=True)
    forenoon_on_duty = db.Column(db.Boolean, nullable=True)
    forenoon_notified = db.Column(db.Boolean, nullable=True)
    afternoon_present = db.Column(db.Boolean, nullable=True)
    afternoon_on_duty = db.Column(db.Boolean, nullable=True)
    afternoon_notified = db.Column(db.Boolean, nullable=True)

    progress = db.relationship("TrainingProgress", back_populates="attendance")

    __table_args__ = (
        db.UniqueConstraint("progress_id", "date", name="uq_attendance_progress_date"),
    )

    def get_session(self, session: DaySession) -> Optional[SessionMark]:
        prefix = DaySession(session).value
        present = getattr(self, f"{prefix}_present")
        if present is None:
            return None
        return SessionMark(
            present=bool(present),
            on_duty=bool(getattr(self, f"{prefix}_on_duty")),
            notified=bool(getattr(self, f"{prefix}_notified")),
        )

    def set_session(self, session: DaySession, mark: Optional[SessionMark]) -> None:
        prefix = DaySession(session).value
        setattr(self, f"{prefix}_present", None if mark is None else mark.present)
        setattr(self, f"{prefix}_on_duty", None if mark is None else mark.on_duty)
        setattr(self, f"{prefix}_notified", None if mark is None else mark.notified)

    @property
    def forenoon(self) -> Optional[SessionMark]:
        return self.get_session(DaySession.FORENOON)

    @property
    def afternoon(self) -> Optional[SessionMark]:
        return self.get_session(DaySession.AFTERNOON)


class ExamScore(db.Model):
    __tablename__ = "exam_scores"

    id = db.Column(db.Integer, primary_key=True)
    progress_id = db.Column(
        db.Integer, db.ForeignKey("training_progress.id", ondelete="CASCADE"), nullable=False
    )
    exam = db.Column(db.Integer, nullable=False)
    score = db.Column(db.Float, nullable=False, default=0)

    progress = db.relationship("TrainingProgress", back_populates="exam_scores")

    __table_args__ = (
        db.UniqueConstraint("progress_id", "exam", name="uq_exam_score_progress_exam"),
    )
