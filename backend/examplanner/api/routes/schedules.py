from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from examplanner.api.deps import get_db
from examplanner.core.exceptions import ResourceNotFoundError
from examplanner.models.department import Department
from examplanner.models.room import Room
from examplanner.schemas.schedule import ScheduleGenerateRequest, ScheduleOut
from examplanner.services.schedules import (
    build_schedule_out,
    department_timetable_pdf,
    generate_and_persist,
    get_latest_schedule,
    get_schedule,
    room_timetable_pdf,
)
from examplanner.services.timetable_pdf import content_disposition_attachment

router = APIRouter()


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition_attachment(filename)},
    )


@router.post("/generate", response_model=ScheduleOut)
def generate_schedule(payload: ScheduleGenerateRequest, db: Session = Depends(get_db)) -> ScheduleOut:
    schedule = generate_and_persist(db, name=payload.name, days=payload.days, slots=payload.slots)
    return build_schedule_out(db, schedule)


@router.get("/latest", response_model=ScheduleOut)
def latest_schedule(db: Session = Depends(get_db)) -> ScheduleOut:
    schedule = get_latest_schedule(db)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", "latest")
    return build_schedule_out(db, schedule)


@router.get("/{schedule_id}", response_model=ScheduleOut)
def read_schedule(schedule_id: str, db: Session = Depends(get_db)) -> ScheduleOut:
    return build_schedule_out(db, get_schedule(db, schedule_id))


@router.get("/{schedule_id}/pdf/department/{department_id}")
def department_pdf(schedule_id: str, department_id: str, db: Session = Depends(get_db)) -> Response:
    schedule = get_schedule(db, schedule_id)
    department = db.get(Department, department_id)
    if department is None:
        raise ResourceNotFoundError("Department", department_id)
    content = department_timetable_pdf(db, schedule, department)
    return _pdf_response(content, f"department-{department.name}-schedule.pdf")


@router.get("/{schedule_id}/pdf/room/{room_id}")
def room_pdf(schedule_id: str, room_id: str, db: Session = Depends(get_db)) -> Response:
    schedule = get_schedule(db, schedule_id)
    room = db.get(Room, room_id)
    if room is None:
        raise ResourceNotFoundError("Room", room_id)
    content = room_timetable_pdf(db, schedule, room)
    return _pdf_response(content, f"room-{room.name}-schedule.pdf")
