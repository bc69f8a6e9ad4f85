from pydantic import BaseModel, Field

from examplanner.schemas.department import DepartmentOut


class CourseBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    department_id: str = Field(min_length=1, max_length=36)
    class_level: int = Field(default=1, ge=1, le=8)


class CourseCreate(CourseBase):
    pass


class CourseUpdate(CourseBase):
    pass


class CourseOut(CourseBase):
    id: str
    department: DepartmentOut | None = None

    @classmethod
    def from_model(cls, course, department=None) -> "CourseOut":
        return cls(
            id=course.id,
            code=course.code,
            name=course.name,
            department_id=course.department_id,
            class_level=course.class_level,
            department=DepartmentOut.model_validate(department) if department is not None else None,
        )
