from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, selectinload

from trainhub.dependencies import Principal, get_db, get_tokens, require_role
from trainhub.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from trainhub.models import Module, Student, TrainingProgress
from trainhub.schemas import StudentLoginForm
from trainhub.security import TokenService, verify_password
from trainhub.serializers import module_dict, progress_dict, student_dict
from trainhub.services import leaderboard

router = APIRouter(prefix="/student", tags=["student"])

student_required = require_role("student")


def _own_record(principal: Principal, student_id: int) -> None:
    if principal.id != student_id:
        raise AuthorizationError("Students may only view their own records")


@router.post("/login")
def login_student(
    form: StudentLoginForm,
    session: Session = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
):
    student = session.query(Student).filter_by(reg_no=form.reg_no.strip()).first()
    if not student:
        raise NotFoundError("Student not found")
    if not verify_password(form.password, student.password_hash):
        raise AuthenticationError("Invalid credentials")
    token = tokens.issue(student.id, "student")
    return {"message": "Login successful", "token": token, "student": student_dict(student)}


@router.get("/module/{module_id}/leaderboard")
def module_leaderboard(
    module_id: int,
    studentId: Optional[int] = None,
    current_user: Principal = Depends(student_required),
    session: Session = Depends(get_db),
):
    module = session.get(Module, module_id)
    if not module:
        raise NotFoundError("Module not found")
    progresses = (
        session.query(TrainingProgress)
        .options(selectinload(TrainingProgress.student), selectinload(TrainingProgress.attendance))
        .filter_by(module_id=module_id)
        .order_by(TrainingProgress.id)
        .all()
    )
    rows = leaderboard.build_leaderboard(progresses)
    me = studentId if studentId is not None else current_user.id
    return {
        "module": module_dict(module),
        "leaderboard": rows,
        "myPosition": leaderboard.find_position(rows, me),
    }


@router.get("/{student_id}")
def get_student_details(
    student_id: int,
    current_user: Principal = Depends(student_required),
    session: Session = Depends(get_db),
):
    _own_record(current_user, student_id)
    student = session.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    return {
        "student": student_dict(student),
        "modules": [module_dict(e.module) for e in student.enrollments],
    }


@router.get("/{student_id}/module/{module_id}")
def get_module_performance(
    student_id: int,
    module_id: int,
    current_user: Principal = Depends(student_required),
    session: Session = Depends(get_db),
):
    _own_record(current_user, student_id)
    progress = (
        session.query(TrainingProgress)
        .filter_by(student_id=student_id, module_id=module_id)
        .first()
    )
    if not progress:
        raise NotFoundError("No progress found for this module")
    return {"module": module_dict(progress.module), "progress": progress_dict(progress)}
