from pydantic import BaseModel, Field

from examplanner.schemas.course import CourseOut


class ExamRequestBase(BaseModel):
    course_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    student_count: int = Field(ge=1, le=100_000)
    duration_minutes: int = Field(default=60, ge=1, le=24 * 60)


class ExamRequestCreate(ExamRequestBase):
    pass


class ExamRequestUpdate(ExamRequestBase):
    pass


class ExamRequestTeacher(BaseModel):
    id: str
    name: str


class ExamRequestOut(ExamRequestBase):
    id: str
    course: CourseOut | None = None
    teacher: ExamRequestTeacher | None = None
