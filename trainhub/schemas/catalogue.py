from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ModuleForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: Optional[str] = None
    duration_days: int = Field(default=0, ge=0, alias="durationDays")
    exams_count: int = Field(default=0, ge=0, alias="examsCount")


class VenueForm(BaseModel):
    name: str
    capacity: int = Field(gt=0)


class StaffForm(BaseModel):
    name: str
    email: str
    password: str


class VenueStudents(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    venue_id: int = Field(alias="venueId")
    student_ids: List[int] = Field(alias="studentIds")


class ModuleAssignmentForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    module_id: int = Field(alias="moduleId")
    assignments: List[VenueStudents]


class StaffAssignmentForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    staff_id: int = Field(alias="staffId")
    venue_id: int = Field(alias="venueId")


class StaffUnassignForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    staff_id: int = Field(alias="staffId")
