from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trainhub.dependencies import Principal, get_db, get_tokens, require_role
from trainhub.exceptions import AuthenticationError, NotFoundError
from trainhub.models import Staff
from trainhub.schemas import LoginForm, StaffAttendanceForm
from trainhub.security import TokenService, verify_password
from trainhub.serializers import staff_dict, student_dict
from trainhub.services import attendance, leaderboard

router = APIRouter(prefix="/staff", tags=["staff"])

staff_required = require_role("staff")


def _current_staff(session: Session, principal: Principal) -> Staff:
    staff = session.get(Staff, principal.id)
    if not staff:
        raise NotFoundError("Staff not found")
    return staff


def _venue_progress(session: Session, principal: Principal):
    venue_id = attendance.staff_venue_id(_current_staff(session, principal))
    return attendance.progress_in_scope(session, venue_id=venue_id)


@router.post("/login")
def login_staff(
    form: LoginForm,
    session: Session = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
):
    staff = session.query(Staff).filter_by(email=form.email.strip().lower()).first()
    if not staff:
        raise NotFoundError("Staff not found")
    if not verify_password(form.password, staff.password_hash):
        raise AuthenticationError("Invalid credentials")
    token = tokens.issue(staff.id, "staff", email=staff.email)
    return {"message": "Login successful", "token": token, "staff": staff_dict(staff)}


@router.get("/me")
def get_staff_details(
    current_user: Principal = Depends(staff_required),
    session: Session = Depends(get_db),
):
    return {"staff": staff_dict(_current_staff(session, current_user))}


@router.get("/venue-students")
def venue_students(
    current_user: Principal = Depends(staff_required),
    session: Session = Depends(get_db),
):
    progresses = _venue_progress(session, current_user)
    seen: dict[int, dict] = {}
    for p in progresses:
        seen.setdefault(p.student_id, student_dict(p.student))
    return {"students": list(seen.values())}


@router.post("/mark-attendance")
def mark_attendance(
    form: StaffAttendanceForm,
    current_user: Principal = Depends(staff_required),
    session: Session = Depends(get_db),
):
    """Records only the listed students; the rest of the venue is left as it was."""
    staff = _current_staff(session, current_user)
    day, day_session, outcome = attendance.mark_attendance_for_staff(
        session,
        staff,
        on_date=form.date,
        day_session=form.session,
        rows=form.attendance_data,
    )
    return {
        "message": "Attendance marked",
        "date": day.isoformat(),
        "session": day_session.value,
        "results": [r.as_dict() for r in outcome.results],
        "summary": outcome.summary(),
    }


@router.get("/venue-leaderboard")
def venue_leaderboard(
    current_user: Principal = Depends(staff_required),
    session: Session = Depends(get_db),
):
    return {"leaderboard": leaderboard.build_leaderboard(_venue_progress(session, current_user))}


@router.get("/attendance-history")
def attendance_history(
    current_user: Principal = Depends(staff_required),
    session: Session = Depends(get_db),
):
    return {"attendanceHistory": attendance.attendance_history(_venue_progress(session, current_user))}
