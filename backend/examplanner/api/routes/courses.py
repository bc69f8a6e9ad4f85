from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from examplanner.api.deps import get_db
from examplanner.models.course import Course
from examplanner.models.department import Department
from examplanner.models.exam_request import ExamRequest
from examplanner.schemas.course import CourseCreate, CourseOut, CourseUpdate

router = APIRouter()


def _require_department(db: Session, department_id: str) -> Department:
    department = db.get(Department, department_id)
    if department is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Department does not exist")
    return department


@router.get("/", response_model=list[CourseOut])
def list_courses(db: Session = Depends(get_db)) -> list[CourseOut]:
    rows = db.execute(
        select(Course, Department)
        .outerjoin(Department, Department.id == Course.department_id)
        .order_by(Department.name, Course.code)
    ).all()
    return [CourseOut.from_model(course, department) for course, department in rows]


@router.post("/", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(payload: CourseCreate, db: Session = Depends(get_db)) -> CourseOut:
    existing = db.execute(select(Course).where(Course.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course code already exists")
    department = _require_department(db, payload.department_id)
    course = Course(**payload.model_dump())
    db.add(course)
    db.commit()
    db.refresh(course)
    return CourseOut.from_model(course, department)


@router.put("/{course_id}", response_model=CourseOut)
def update_course(course_id: str, payload: CourseUpdate, db: Session = Depends(get_db)) -> CourseOut:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    existing = db.execute(
        select(Course).where(Course.code == payload.code, Course.id != course_id)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course code already exists")
    department = _require_department(db, payload.department_id)
    for key, value in payload.model_dump().items():
        setattr(course, key, value)
    db.commit()
    db.refresh(course)
    return CourseOut.from_model(course, department)


@router.delete("/{course_id}")
def delete_course(course_id: str, db: Session = Depends(get_db)) -> dict:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    in_use = db.execute(select(ExamRequest.id).where(ExamRequest.course_id == course_id).limit(1)).first()
    if in_use:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course still has exam requests")
    db.delete(course)
    db.commit()
    return {"success": True}
