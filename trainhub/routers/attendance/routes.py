from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trainhub.dependencies import Principal, get_db, get_mailer, require_role
from trainhub.schemas import MarkAttendanceForm
from trainhub.services import attendance
from trainhub.services.notifications import Mailer

router = APIRouter(prefix="/admin", tags=["attendance"])

admin_required = require_role("admin")


@router.post("/mark-attendance")
def mark_attendance(
    form: MarkAttendanceForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Reconciles one session's attendance for every venue named in the batch.
    Students of those venues missing from the batch are recorded absent, and
    students who just became absent are emailed once per date and session.
    """
    day, day_session, outcome = attendance.mark_attendance_by_venue(
        session,
        on_date=form.date,
        day_session=form.session,
        rows=form.attendance_data,
        module_id=form.module_id,
    )
    report = mailer.send_absence_notifications(outcome.notify_emails, day, day_session)
    return {
        "message": "Attendance marked",
        "date": day.isoformat(),
        "session": day_session.value,
        "results": [r.as_dict() for r in outcome.results],
        "summary": outcome.summary(),
        "emails": report.as_dict(),
    }


@router.get("/existing-attendance")
def existing_attendance(
    date: str,
    session: str,
    venueId: Optional[int] = None,
    moduleId: Optional[int] = None,
    current_user: Principal = Depends(admin_required),
    db_session: Session = Depends(get_db),
):
    return {
        "attendance": attendance.existing_attendance(
            db_session,
            on_date=date,
            day_session=session,
            venue_id=venueId,
            module_id=moduleId,
        )
    }
