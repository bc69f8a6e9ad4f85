from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from examplanner.api.deps import get_db
from examplanner.models.exam_request import ExamRequest
from examplanner.models.teacher import Teacher, TeacherAvailability
from examplanner.schemas.teacher import TeacherCreate, TeacherOut, TeacherUpdate
from examplanner.services.schedules import load_availability_map

router = APIRouter()


def _teacher_out(teacher: Teacher, available_days: list[int]) -> TeacherOut:
    return TeacherOut(id=teacher.id, name=teacher.name, available_days=available_days)


def _replace_availability(db: Session, teacher_id: str, days: list[int]) -> None:
    db.execute(delete(TeacherAvailability).where(TeacherAvailability.teacher_id == teacher_id))
    db.add_all(TeacherAvailability(teacher_id=teacher_id, day_of_week=day) for day in days)


@router.get("/", response_model=list[TeacherOut])
def list_teachers(db: Session = Depends(get_db)) -> list[TeacherOut]:
    availability = load_availability_map(db)
    teachers = db.execute(select(Teacher).order_by(Teacher.name)).scalars()
    return [_teacher_out(teacher, availability.get(teacher.id, [])) for teacher in teachers]


@router.post("/", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(payload: TeacherCreate, db: Session = Depends(get_db)) -> TeacherOut:
    teacher = Teacher(name=payload.name)
    db.add(teacher)
    db.flush()
    _replace_availability(db, teacher.id, payload.available_days)
    db.commit()
    db.refresh(teacher)
    return _teacher_out(teacher, payload.available_days)


@router.put("/{teacher_id}", response_model=TeacherOut)
def update_teacher(teacher_id: str, payload: TeacherUpdate, db: Session = Depends(get_db)) -> TeacherOut:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    teacher.name = payload.name
    _replace_availability(db, teacher.id, payload.available_days)
    db.commit()
    db.refresh(teacher)
    return _teacher_out(teacher, payload.available_days)


@router.delete("/{teacher_id}")
def delete_teacher(teacher_id: str, db: Session = Depends(get_db)) -> dict:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    in_use = db.execute(select(ExamRequest.id).where(ExamRequest.teacher_id == teacher_id).limit(1)).first()
    if in_use:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher still has exam requests")
    db.execute(delete(TeacherAvailability).where(TeacherAvailability.teacher_id == teacher_id))
    db.delete(teacher)
    db.commit()
    return {"success": True}
