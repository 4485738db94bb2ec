from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from trainhub.exceptions import NotFoundError, ValidationError
from trainhub.models import (
    AttendanceEntry,
    DaySession,
    SessionMark,
    Staff,
    TrainingProgress,
    Venue,
)
from trainhub.utils import parse_day, parse_session

log = logging.getLogger(__name__)

PRESENT = "present"
ABSENT = "absent"
ON_DUTY = "onDuty"
PARTIAL = "partial"


@dataclass(frozen=True)
class Observation:
    student_id: int
    present: bool
    on_duty: bool = False


# venue id -> (student id -> observation), in request order
VenueRoster = dict[int, dict[int, Observation]]


@dataclass
class StudentResult:
    student_id: int
    status: str
    module_id: Optional[int] = None
    present: Optional[bool] = None
    on_duty: Optional[bool] = None
    notified: bool = False
    reason: Optional[str] = None

    def as_dict(self) -> dict:
        data = {"studentId": self.student_id, "status": self.status}
        if self.module_id is not None:
            data["moduleId"] = self.module_id
        if self.present is not None:
            data["present"] = self.present
            data["od"] = self.on_duty
            data["notified"] = self.notified
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass
class ReconcileOutcome:
    results: list[StudentResult] = field(default_factory=list)
    notify_emails: list[str] = field(default_factory=list)

    def extend(self, other: "ReconcileOutcome") -> None:
        self.results.extend(other.results)
        for email in other.notify_emails:
            if email not in self.notify_emails:
                self.notify_emails.append(email)

    def summary(self) -> dict:
        counts = {"total": len(self.results), "updated": 0, "skipped": 0, "failed": 0}
        for r in self.results:
            counts[r.status] = counts.get(r.status, 0) + 1
        counts["notified"] = sum(1 for r in self.results if r.notified)
        return counts


def merge_session(
    entry: AttendanceEntry, day_session: DaySession, present: bool, on_duty: bool
) -> tuple[Optional[SessionMark], SessionMark]:
    """Overwrite one session of an entry; the other session is never touched."""
    before = entry.get_session(day_session)
    if before is None:
        after = SessionMark(present=present, on_duty=on_duty)
    else:
        after = before.merged(present, on_duty)
    entry.set_session(day_session, after)
    return before, after


def is_newly_absent(before: Optional[SessionMark], after: SessionMark) -> bool:
    already_absent = before is not None and before.is_absent
    return after.is_absent and not already_absent and not after.notified


def upsert_attendance(
    progress: TrainingProgress,
    day: date,
    day_session: DaySession,
    present: bool,
    on_duty: bool,
    *,
    notify: bool = False,
) -> tuple[SessionMark, bool]:
    """
    Record one observation on a progress record's entry for `day`, creating the
    entry when the date has none yet. Returns the stored mark and whether an
    absence notification is due; the notified flag is set on the same write.
    """
    entry = progress.entry_for(day)
    if entry is None:
        entry = AttendanceEntry(date=day)
        progress.attendance.append(entry)

    before, after = merge_session(entry, day_session, present, on_duty)
    triggered = notify and is_newly_absent(before, after)
    if triggered:
        after = replace(after, notified=True)
        entry.set_session(day_session, after)
    progress.touch()
    return after, triggered


def progress_in_scope(
    session: Session, *, venue_id: int | None = None, module_id: int | None = None
) -> list[TrainingProgress]:
    query = session.query(TrainingProgress).options(
        selectinload(TrainingProgress.attendance),
        selectinload(TrainingProgress.student),
    )
    if venue_id is not None:
        query = query.filter(TrainingProgress.venue_id == venue_id)
    if module_id is not None:
        query = query.filter(TrainingProgress.module_id == module_id)
    return query.order_by(TrainingProgress.id).all()


def reconcile_attendance(
    session: Session,
    *,
    day: date,
    day_session: DaySession,
    roster: Iterable[TrainingProgress],
    observations: dict[int, Observation],
    full_roster: bool,
    notify: bool,
) -> ReconcileOutcome:
    """
    Merge a batch of observations into every progress record of `roster`.

    Observed students without a record in the roster are reported as skipped.
    Unobserved roster students are marked absent when `full_roster` is set and
    left alone otherwise. Each record is committed on its own, so one failed
    write only fails that student.
    """
    outcome = ReconcileOutcome()
    roster = list(roster)
    in_roster = {p.student_id for p in roster}

    for student_id in observations:
        if student_id not in in_roster:
            outcome.results.append(
                StudentResult(student_id, "skipped", reason="No training progress in scope")
            )

    for progress in roster:
        student_id = progress.student_id
        obs = observations.get(student_id)
        if obs is None:
            if not full_roster:
                continue
            obs = Observation(student_id, present=False, on_duty=False)

        module_id = progress.module_id
        email = progress.student.email if progress.student else None
        try:
            mark, triggered = upsert_attendance(
                progress, day, day_session, obs.present, obs.on_duty, notify=notify
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            log.warning("Attendance write failed for student %s: %s", student_id, e)
            outcome.results.append(
                StudentResult(student_id, "failed", module_id=module_id, reason=str(e))
            )
            continue

        outcome.results.append(
            StudentResult(
                student_id,
                "updated",
                module_id=module_id,
                present=mark.present,
                on_duty=mark.on_duty,
                notified=triggered,
            )
        )
        if triggered and email and email not in outcome.notify_emails:
            outcome.notify_emails.append(email)

    return outcome


def build_venue_roster(session: Session, rows: Iterable) -> VenueRoster:
    """
    Group loosely-shaped observation rows into venue -> student -> observation.
    Every venue must exist; nothing is written when one does not.
    """
    roster: VenueRoster = {}
    for row in rows:
        if row.venue_id is None:
            raise ValidationError(f"venueId is required for student {row.student_id}")
        observations = roster.setdefault(row.venue_id, {})
        observations[row.student_id] = Observation(row.student_id, row.present, row.on_duty)

    if roster:
        known = {
            vid for (vid,) in session.query(Venue.id).filter(Venue.id.in_(list(roster))).all()
        }
        missing = [vid for vid in roster if vid not in known]
        if missing:
            raise ValidationError(f"Unknown venue id(s): {', '.join(map(str, missing))}")
    return roster


def mark_attendance_by_venue(
    session: Session,
    *,
    on_date,
    day_session,
    rows: Iterable,
    module_id: int | None = None,
) -> tuple[date, DaySession, ReconcileOutcome]:
    """Admin marking: every listed venue is reconciled as a full roster."""
    day = parse_day(on_date)
    day_session = parse_session(day_session)
    roster = build_venue_roster(session, rows)

    outcome = ReconcileOutcome()
    for venue_id, observations in roster.items():
        progresses = progress_in_scope(session, venue_id=venue_id, module_id=module_id)
        outcome.extend(
            reconcile_attendance(
                session,
                day=day,
                day_session=day_session,
                roster=progresses,
                observations=observations,
                full_roster=True,
                notify=True,
            )
        )
    log.info(
        "Attendance for %s %s: %s (%d to notify)",
        day, day_session.value, outcome.summary(), len(outcome.notify_emails),
    )
    return day, day_session, outcome


def staff_venue_id(staff: Staff | None) -> int:
    if not staff or not staff.venue_id:
        raise NotFoundError("Staff or assigned venue not found")
    return staff.venue_id


def mark_attendance_for_staff(
    session: Session, staff: Staff, *, on_date, day_session, rows: Iterable
) -> tuple[date, DaySession, ReconcileOutcome]:
    """Staff marking: only the listed students of the staff's venue change."""
    venue_id = staff_venue_id(staff)
    day = parse_day(on_date)
    day_session = parse_session(day_session)
    observations = dict(
        (row.student_id, Observation(row.student_id, row.present, row.on_duty)) for row in rows
    )
    outcome = reconcile_attendance(
        session,
        day=day,
        day_session=day_session,
        roster=progress_in_scope(session, venue_id=venue_id),
        observations=observations,
        full_roster=False,
        notify=False,
    )
    log.info("Staff %s marked %s %s: %s", staff.id, day, day_session.value, outcome.summary())
    return day, day_session, outcome


def existing_attendance(
    session: Session,
    *,
    on_date,
    day_session,
    venue_id: int | None = None,
    module_id: int | None = None,
) -> dict[str, dict]:
    day = parse_day(on_date)
    day_session = parse_session(day_session)
    recorded: dict[str, dict] = {}
    for progress in progress_in_scope(session, venue_id=venue_id, module_id=module_id):
        entry = progress.entry_for(day)
        mark = entry.get_session(day_session) if entry else None
        if mark is None:
            continue
        recorded[str(progress.student_id)] = {
            "present": mark.present,
            "od": mark.on_duty,
            "notified": mark.notified,
        }
    return recorded


def classify_day(entry: AttendanceEntry) -> str:
    """On-duty wins over everything; an unrecorded session counts as absent."""
    sessions = [entry.forenoon, entry.afternoon]
    if any(s is not None and s.on_duty for s in sessions):
        return ON_DUTY
    if all(s is not None and s.present for s in sessions):
        return PRESENT
    if all(s is None or s.is_absent for s in sessions):
        return ABSENT
    return PARTIAL


def attendance_history(progresses: Iterable[TrainingProgress]) -> list[dict]:
    by_date: dict[date, dict] = defaultdict(
        lambda: {PRESENT: [], ABSENT: [], ON_DUTY: [], PARTIAL: []}
    )
    for progress in progresses:
        student = progress.student
        info = {
            "id": student.id,
            "name": student.name,
            "regNo": student.reg_no,
            "email": student.email,
            "batch": student.batch,
            "department": student.department,
        }
        for entry in progress.attendance:
            by_date[entry.date][classify_day(entry)].append(info)

    return [
        {"date": day.isoformat(), **buckets}
        for day, buckets in sorted(by_date.items(), key=lambda item: item[0], reverse=True)
    ]
