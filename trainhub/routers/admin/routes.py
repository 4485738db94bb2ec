from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from trainhub.config import Settings
from trainhub.dependencies import Principal, get_db, get_settings, get_tokens, require_role
from trainhub.exceptions import AuthenticationError, ConflictError, NotFoundError
from trainhub.models import Admin, Module, Staff, Student, Venue
from trainhub.schemas import (
    AdminRegisterForm,
    BatchReassignForm,
    LoginForm,
    ModuleAssignmentForm,
    ModuleForm,
    StaffAssignmentForm,
    StaffForm,
    StaffUnassignForm,
    StudentForm,
    VenueForm,
)
from trainhub.security import TokenService, hash_password, verify_password
from trainhub.serializers import module_dict, staff_dict, student_dict, venue_dict
from trainhub.services import assignment, enrollment, students

router = APIRouter(prefix="/admin", tags=["admin"])

admin_required = require_role("admin")


# --- Auth ---

@router.post("/register", status_code=201)
def register_admin(form: AdminRegisterForm, session: Session = Depends(get_db)):
    email = form.email.strip().lower()
    if session.query(Admin).filter_by(email=email).first():
        raise ConflictError("Admin already exists")
    session.add(Admin(name=form.name.strip(), email=email, password_hash=hash_password(form.password)))
    session.commit()
    return {"message": "Admin registered successfully"}


@router.post("/login")
def login_admin(
    form: LoginForm,
    session: Session = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
):
    admin = session.query(Admin).filter_by(email=form.email.strip().lower()).first()
    if not admin:
        raise NotFoundError("Admin not found")
    if not verify_password(form.password, admin.password_hash):
        raise AuthenticationError("Invalid credentials")
    token = tokens.issue(admin.id, "admin", email=admin.email)
    return {
        "message": "Login successful",
        "token": token,
        "admin": {"id": admin.id, "name": admin.name, "email": admin.email},
    }


# --- Students ---

@router.post("/students", status_code=201)
def create_student(
    form: StudentForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    student = students.register_student(
        session,
        name=form.name,
        reg_no=form.reg_no,
        email=form.email,
        password=form.password or settings.DEFAULT_STUDENT_PASSWORD,
        batch=form.batch,
        passout_year=form.passout_year,
        department=form.department,
        leetcode_id=form.leetcode_id,
        codechef_id=form.codechef_id,
    )
    return {"message": "Student registered successfully", "student": student_dict(student)}


@router.post("/students/bulk")
async def bulk_create_students(
    file: UploadFile = File(...),
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Registers students from an .xlsx or .csv sheet with columns
    name, regNo, email, batch, passoutYear, department (password optional).
    """
    contents = await file.read()
    df = students.read_sheet(file.filename, contents)
    return students.bulk_register_students(session, df, settings.DEFAULT_STUDENT_PASSWORD)


@router.get("/students")
def list_students(
    batch: Optional[str] = None,
    department: Optional[str] = None,
    passoutYear: Optional[int] = None,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    query = session.query(Student)
    if batch:
        query = query.filter(Student.batch == batch)
    if department:
        query = query.filter(Student.department == department)
    if passoutYear:
        query = query.filter(Student.passout_year == passoutYear)
    return {"students": [student_dict(s) for s in query.order_by(Student.reg_no).all()]}


@router.get("/students/{student_id}")
def get_student(
    student_id: int,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    student = session.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    return {"student": student_dict(student)}


@router.patch("/students/batch")
def reassign_batch(
    form: BatchReassignForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    updated = students.reassign_batch(session, form.student_ids, form.batch)
    return {"message": "Batch updated", "updated": updated}


@router.post("/students/{student_id}/complete-training")
def complete_training(
    student_id: int,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    student = students.complete_training(session, student_id)
    return {"student": student_dict(student)}


@router.delete("/students/{student_id}")
def delete_student(
    student_id: int,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    removed = students.delete_student(session, student_id)
    return {"message": "Student deleted", "progressRecordsDeleted": removed}


# --- Modules ---

@router.post("/modules", status_code=201)
def create_module(
    form: ModuleForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    module = Module(
        title=form.title.strip(),
        description=form.description,
        duration_days=form.duration_days,
        exams_count=form.exams_count,
    )
    session.add(module)
    session.commit()
    return {"module": module_dict(module)}


@router.get("/modules")
def list_modules(
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    modules = session.query(Module).order_by(Module.created_at.desc(), Module.id.desc()).all()
    return {"modules": [module_dict(m) for m in modules]}


@router.put("/modules/{module_id}")
def update_module(
    module_id: int,
    form: ModuleForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    module = session.get(Module, module_id)
    if not module:
        raise NotFoundError("Module not found")
    module.title = form.title.strip()
    module.description = form.description
    module.duration_days = form.duration_days
    module.exams_count = form.exams_count
    session.commit()
    return {"module": module_dict(module)}


@router.post("/modules/{module_id}/complete")
def complete_module(
    module_id: int,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    module = session.get(Module, module_id)
    if not module:
        raise NotFoundError("Module not found")
    module.is_completed = True
    session.commit()
    return {"module": module_dict(module)}


@router.post("/assign-module")
def assign_module(
    form: ModuleAssignmentForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    return enrollment.assign_module(session, form.module_id, form.assignments)


# --- Venues & staff ---

@router.post("/venues", status_code=201)
def create_venue(
    form: VenueForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    name = form.name.strip()
    if session.query(Venue).filter_by(name=name).first():
        raise ConflictError("Venue name already exists")
    venue = Venue(name=name, capacity=form.capacity)
    session.add(venue)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError("Venue name already exists") from e
    return {"venue": venue_dict(venue)}


@router.get("/venues")
def list_venues(
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    return {"venues": [venue_dict(v) for v in session.query(Venue).order_by(Venue.name).all()]}


@router.post("/staff", status_code=201)
def create_staff(
    form: StaffForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    email = form.email.strip().lower()
    if session.query(Staff).filter_by(email=email).first():
        raise ConflictError("Staff with this email already exists")
    staff = Staff(name=form.name.strip(), email=email, password_hash=hash_password(form.password))
    session.add(staff)
    session.commit()
    return {"staff": staff_dict(staff)}


@router.get("/staff")
def list_staff(
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    return {"staff": [staff_dict(s) for s in session.query(Staff).order_by(Staff.name).all()]}


@router.post("/assign-staff")
def assign_staff(
    form: StaffAssignmentForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    staff, venue = assignment.assign_staff(session, form.staff_id, form.venue_id)
    return {"message": "Staff assigned", "staff": staff_dict(staff), "venue": venue_dict(venue)}


@router.post("/unassign-staff")
def unassign_staff(
    form: StaffUnassignForm,
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    staff = assignment.unassign_staff(session, form.staff_id)
    return {"message": "Staff unassigned", "staff": staff_dict(staff)}


@router.post("/unassign-all")
def unassign_all(
    current_user: Principal = Depends(admin_required),
    session: Session = Depends(get_db),
):
    return {"message": "All assignments reset", **assignment.unassign_all(session)}
