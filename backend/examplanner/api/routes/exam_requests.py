from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from examplanner.api.deps import get_db
from examplanner.models.course import Course
from examplanner.models.department import Department
from examplanner.models.exam_request import ExamRequest
from examplanner.models.teacher import Teacher
from examplanner.schemas.course import CourseOut
from examplanner.schemas.exam_request import (
    ExamRequestCreate,
    ExamRequestOut,
    ExamRequestTeacher,
    ExamRequestUpdate,
)

router = APIRouter()


def _exam_request_out(
    item: ExamRequest,
    course: Course | None,
    department: Department | None,
    teacher: Teacher | None,
) -> ExamRequestOut:
    return ExamRequestOut(
        id=item.id,
        course_id=item.course_id,
        teacher_id=item.teacher_id,
        student_count=item.student_count,
        duration_minutes=item.duration_minutes,
        course=CourseOut.from_model(course, department) if course is not None else None,
        teacher=ExamRequestTeacher(id=teacher.id, name=teacher.name) if teacher is not None else None,
    )


def _resolve_references(db: Session, course_id: str, teacher_id: str) -> tuple[Course, Department | None, Teacher]:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Course does not exist")
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Teacher does not exist")
    return course, db.get(Department, course.department_id), teacher


@router.get("/", response_model=list[ExamRequestOut])
def list_exam_requests(db: Session = Depends(get_db)) -> list[ExamRequestOut]:
    courses = {item.id: item for item in db.execute(select(Course)).scalars()}
    departments = {item.id: item for item in db.execute(select(Department)).scalars()}
    teachers = {item.id: item for item in db.execute(select(Teacher)).scalars()}
    rows = db.execute(select(ExamRequest).order_by(ExamRequest.created_at.desc(), ExamRequest.id)).scalars()
    out: list[ExamRequestOut] = []
    for item in rows:
        course = courses.get(item.course_id)
        department = departments.get(course.department_id) if course is not None else None
        out.append(_exam_request_out(item, course, department, teachers.get(item.teacher_id)))
    return out


@router.post("/", response_model=ExamRequestOut, status_code=status.HTTP_201_CREATED)
def create_exam_request(payload: ExamRequestCreate, db: Session = Depends(get_db)) -> ExamRequestOut:
    course, department, teacher = _resolve_references(db, payload.course_id, payload.teacher_id)
    item = ExamRequest(**payload.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return _exam_request_out(item, course, department, teacher)


@router.put("/{exam_request_id}", response_model=ExamRequestOut)
def update_exam_request(
    exam_request_id: str,
    payload: ExamRequestUpdate,
    db: Session = Depends(get_db),
) -> ExamRequestOut:
    item = db.get(ExamRequest, exam_request_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam request not found")
    course, department, teacher = _resolve_references(db, payload.course_id, payload.teacher_id)
    for key, value in payload.model_dump().items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    return _exam_request_out(item, course, department, teacher)


@router.delete("/{exam_request_id}")
def delete_exam_request(exam_request_id: str, db: Session = Depends(get_db)) -> dict:
    item = db.get(ExamRequest, exam_request_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam request not found")
    db.delete(item)
    db.commit()
    return {"success": True}
