from .auth import AdminRegisterForm, LoginForm, StudentLoginForm
from .student import StudentForm, BatchReassignForm
from .catalogue import (
    ModuleForm,
    VenueForm,
    StaffForm,
    VenueStudents,
    ModuleAssignmentForm,
    StaffAssignmentForm,
    StaffUnassignForm,
)
from .attendance import AttendanceRow, MarkAttendanceForm, StaffAttendanceForm, ScoreForm

__all__ = [
    "AdminRegisterForm", "LoginForm", "StudentLoginForm",
    "StudentForm", "BatchReassignForm",
    "ModuleForm", "VenueForm", "StaffForm", "VenueStudents",
    "ModuleAssignmentForm", "StaffAssignmentForm", "StaffUnassignForm",
    "AttendanceRow", "MarkAttendanceForm", "StaffAttendanceForm", "ScoreForm",
]
