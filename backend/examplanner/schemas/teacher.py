from typing import Annotated

from pydantic import BaseModel, Field, field_validator

DayOfWeek = Annotated[int, Field(ge=0, le=6)]


class TeacherBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    available_days: list[DayOfWeek] = Field(default_factory=list, max_length=7)

    @field_validator("available_days")
    @classmethod
    def normalize_days(cls, value: list[int]) -> list[int]:
        return sorted(set(value))


class TeacherCreate(TeacherBase):
    pass


class TeacherUpdate(TeacherBase):
    pass


class TeacherOut(TeacherBase):
    id: str
