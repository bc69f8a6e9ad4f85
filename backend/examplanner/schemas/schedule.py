from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field

from examplanner.schemas.course import CourseOut
from examplanner.schemas.exam_request import ExamRequestTeacher
from examplanner.schemas.room import RoomOut
from examplanner.schemas.teacher import DayOfWeek


SlotLabel = Annotated[str, Field(min_length=1, max_length=16)]


class ScheduleGenerateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    days: list[DayOfWeek] = Field(default_factory=list)
    slots: list[SlotLabel] = Field(default_factory=list)


class AllocationOut(BaseModel):
    id: str
    room_id: str
    assigned_students: int
    room: RoomOut | None = None


class ExamSessionOut(BaseModel):
    id: str
    course_id: str
    teacher_id: str
    day_of_week: int
    slot_index: int
    start_minute_of_day: int
    end_minute_of_day: int
    duration_minutes: int
    start_time: str
    end_time: str
    course: CourseOut | None = None
    teacher: ExamRequestTeacher | None = None
    allocations: list[AllocationOut] = Field(default_factory=list)


class ScheduleOut(BaseModel):
    id: str
    name: str
    days: list[int]
    slots: list[str]
    created_at: datetime | None = None
    exam_sessions: list[ExamSessionOut] = Field(default_factory=list)
