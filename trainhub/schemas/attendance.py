from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AttendanceRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: int = Field(alias="studentId")
    venue_id: Optional[int] = Field(default=None, alias="venueId")
    present: bool = False
    on_duty: bool = Field(default=False, alias="od")


class MarkAttendanceForm(BaseModel):
    """`date` and `session` stay strings so bad values are rejected with a 400."""

    model_config = ConfigDict(populate_by_name=True)

    date: str
    session: str
    module_id: Optional[int] = Field(default=None, alias="moduleId")
    attendance_data: List[AttendanceRow] = Field(alias="attendanceData")


class ScoreForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: int = Field(alias="studentId")
    module_id: int = Field(alias="moduleId")
    exam_index: int = Field(alias="examIndex")
    score: float


class StaffAttendanceForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    session: str
    attendance_data: List[AttendanceRow] = Field(alias="attendanceData")
