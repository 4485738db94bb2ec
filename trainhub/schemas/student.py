from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StudentForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    reg_no: str = Field(alias="regNo")
    email: str
    password: Optional[str] = None
    batch: str
    passout_year: int = Field(alias="passoutYear")
    department: str
    leetcode_id: Optional[str] = Field(default=None, alias="leetcodeId")
    codechef_id: Optional[str] = Field(default=None, alias="codechefId")


class BatchReassignForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_ids: List[int] = Field(alias="studentIds")
    batch: str
