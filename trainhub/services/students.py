from __future__ import annotations

import io
import logging

import pandas as pd
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from trainhub.exceptions import ConflictError, NotFoundError, ValidationError
from trainhub.models import BATCHES, DEPARTMENTS, Student
from trainhub.security import hash_password
from trainhub.utils import cell_text

log = logging.getLogger(__name__)

STUDENT_COLUMNS = {"name", "regno", "email", "batch", "passoutyear", "department"}


def read_sheet(filename: str, contents: bytes) -> pd.DataFrame:
    """Load an uploaded .xlsx/.xls/.csv file into a DataFrame with normalised headers."""
    fname = (filename or "").lower()
    try:
        if fname.endswith(".csv"):
            df = pd.read_csv(io.BytesIO(contents))
        elif fname.endswith((".xlsx", ".xls")):
            df = pd.read_excel(io.BytesIO(contents))
        else:
            raise ValidationError("Unsupported file type. Please upload .xlsx or .csv")
    except ValidationError:
        raise
    except Exception as e:
        raise ValidationError(f"Could not read file: {e}") from e
    df.columns = [str(c).strip().lower().replace(" ", "").replace("_", "") for c in df.columns]
    return df


def _check_choice(value: str, choices: tuple[str, ...], label: str) -> str:
    for choice in choices:
        if choice.lower() == value.strip().lower():
            return choice
    raise ValidationError(f"Invalid {label} {value!r}; expected one of: {', '.join(choices)}")


def register_student(
    session: Session,
    *,
    name: str,
    reg_no: str,
    email: str,
    password: str,
    batch: str,
    passout_year: int,
    department: str,
    leetcode_id: str | None = None,
    codechef_id: str | None = None,
    commit: bool = True,
) -> Student:
    reg_no = reg_no.strip()
    email = email.strip().lower()
    if not reg_no or not email or not name.strip():
        raise ValidationError("name, regNo and email are required")
    batch = _check_choice(batch, BATCHES, "batch")
    department = _check_choice(department, DEPARTMENTS, "department")

    clash = (
        session.query(Student)
        .filter(or_(Student.reg_no == reg_no, Student.email == email))
        .first()
    )
    if clash:
        field_name = "registration number" if clash.reg_no == reg_no else "email"
        raise ConflictError(f"A student with this {field_name} already exists")

    student = Student(
        name=name.strip(),
        reg_no=reg_no,
        email=email,
        password_hash=hash_password(password),
        batch=batch,
        passout_year=int(passout_year),
        department=department,
        leetcode_id=leetcode_id or None,
        codechef_id=codechef_id or None,
    )
    session.add(student)
    if commit:
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise ConflictError("A student with this registration number or email already exists") from e
    return student


def bulk_register_students(session: Session, df: pd.DataFrame, default_password: str) -> dict:
    """Register one student per row; bad rows are reported and skipped."""
    missing = STUDENT_COLUMNS - set(df.columns)
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(sorted(missing))}")

    created: list[dict] = []
    failures: list[dict] = []
    for position, (_, row) in enumerate(df.iterrows(), start=2):
        reg_no = cell_text(row, "regno")
        try:
            year = cell_text(row, "passoutyear")
            if not year.isdigit():
                raise ValidationError(f"Invalid passout year {year!r}")
            student = register_student(
                session,
                name=cell_text(row, "name"),
                reg_no=reg_no,
                email=cell_text(row, "email"),
                password=cell_text(row, "password") or default_password,
                batch=cell_text(row, "batch"),
                passout_year=int(year),
                department=cell_text(row, "department"),
                leetcode_id=cell_text(row, "leetcodeid"),
                codechef_id=cell_text(row, "codechefid"),
            )
        except (ValidationError, ConflictError) as e:
            failures.append({"row": position, "regNo": reg_no, "reason": e.message})
            continue
        created.append({"id": student.id, "regNo": student.reg_no, "name": student.name})

    log.info("Bulk student import: %d created, %d failed", len(created), len(failures))
    return {
        "total": len(created) + len(failures),
        "created": len(created),
        "failed": len(failures),
        "students": created,
        "failures": failures,
    }


def delete_student(session: Session, student_id: int) -> int:
    """Delete a student and, through the ORM cascade, its progress records."""
    student = session.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    removed = len(student.progress)
    session.delete(student)
    session.commit()
    log.info("Deleted student %s with %d progress records", student_id, removed)
    return removed


def reassign_batch(session: Session, student_ids: list[int], batch: str) -> int:
    batch = _check_choice(batch, BATCHES, "batch")
    updated = (
        session.query(Student)
        .filter(Student.id.in_(student_ids))
        .update({Student.batch: batch}, synchronize_session="fetch")
    )
    session.commit()
    return updated


def complete_training(session: Session, student_id: int) -> Student:
    student = session.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    student.trainings_completed = (student.trainings_completed or 0) + 1
    session.commit()
    return student
