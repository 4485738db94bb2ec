from pydantic import BaseModel, ConfigDict, Field


class AdminRegisterForm(BaseModel):
    name: str
    email: str
    password: str


class LoginForm(BaseModel):
    email: str
    password: str


class StudentLoginForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reg_no: str = Field(alias="regNo")
    password: str
