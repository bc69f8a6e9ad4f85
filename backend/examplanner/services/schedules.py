from __future__ import annotations

from collections import defaultdict
import logging
from time import perf_counter

from sqlalchemy import select
from sqlalchemy.orm import Session

from examplanner.core.config import get_settings
from examplanner.core.exceptions import ResourceNotFoundError, SchedulerError
from examplanner.models.course import Course
from examplanner.models.department import Department
from examplanner.models.exam_request import ExamRequest
from examplanner.models.room import Room
from examplanner.models.schedule import ExamRoomAllocation, ExamSession, Schedule
from examplanner.models.teacher import Teacher, TeacherAvailability
from examplanner.schemas.course import CourseOut
from examplanner.schemas.exam_request import ExamRequestTeacher
from examplanner.schemas.room import RoomOut
from examplanner.schemas.schedule import AllocationOut, ExamSessionOut, ScheduleOut
from examplanner.services.scheduler import (
    CourseInput,
    ExamRequestInput,
    GeneratedSession,
    RoomInput,
    TeacherInput,
    generate_schedule,
)
from examplanner.services.timetable_pdf import (
    TimetableDay,
    TimetableEvent,
    build_days,
    compute_hour_range,
    render_timetable_pdf,
)

logger = logging.getLogger(__name__)


def minutes_to_time(value: int) -> str:
    value = max(0, min(24 * 60, int(value)))
    return f"{value // 60:02d}:{value % 60:02d}"


def load_availability_map(db: Session) -> dict[str, list[int]]:
    availability: dict[str, list[int]] = defaultdict(list)
    for row in db.execute(select(TeacherAvailability)).scalars():
        availability[row.teacher_id].append(row.day_of_week)
    return {teacher_id: sorted(days) for teacher_id, days in availability.items()}


def load_engine_inputs(db: Session) -> tuple[list[RoomInput], list[ExamRequestInput]]:
    """Snapshot the current rooms and exam requests for one engine run."""
    rooms = [
        RoomInput(id=room.id, name=room.name, capacity=room.capacity)
        for room in db.execute(select(Room).order_by(Room.name)).scalars()
    ]
    courses = {course.id: course for course in db.execute(select(Course)).scalars()}
    teachers = {teacher.id: teacher for teacher in db.execute(select(Teacher)).scalars()}
    availability = load_availability_map(db)

    requests: list[ExamRequestInput] = []
    rows = db.execute(select(ExamRequest).order_by(ExamRequest.created_at, ExamRequest.id)).scalars()
    for row in rows:
        course = courses.get(row.course_id)
        teacher = teachers.get(row.teacher_id)
        if course is None or teacher is None:
            logger.warning(
                "EXAM REQUEST SKIPPED | request_id=%s | reason=dangling reference | course_id=%s | teacher_id=%s",
                row.id,
                row.course_id,
                row.teacher_id,
            )
            continue
        requests.append(
            ExamRequestInput(
                id=row.id,
                student_count=row.student_count,
                duration_minutes=row.duration_minutes,
                course=CourseInput(
                    id=course.id,
                    code=course.code,
                    name=course.name,
                    department_id=course.department_id,
                ),
                teacher=TeacherInput(
                    id=teacher.id,
                    name=teacher.name,
                    available_days=tuple(availability.get(teacher.id, [])),
                ),
            )
        )
    return rooms, requests


def persist_schedule(
    db: Session,
    *,
    name: str,
    days: list[int],
    slots: list[str],
    sessions: list[GeneratedSession],
) -> Schedule:
    """Write the schedule with all sessions and allocations, or nothing."""
    try:
        schedule = Schedule(name=name, days=list(days), slots=list(slots))
        db.add(schedule)
        db.flush()
        for position, generated in enumerate(sessions):
            session = ExamSession(
                schedule_id=schedule.id,
                course_id=generated.course_id,
                teacher_id=generated.teacher_id,
                day_of_week=generated.day_of_week,
                slot_index=generated.slot_index,
                start_minute_of_day=generated.start_minute_of_day,
                end_minute_of_day=generated.end_minute_of_day,
                duration_minutes=generated.duration_minutes,
                position=position,
            )
            db.add(session)
            db.flush()
            db.add_all(
                ExamRoomAllocation(
                    exam_session_id=session.id,
                    room_id=allocation.room_id,
                    assigned_students=allocation.assigned_students,
                    position=index,
                )
                for index, allocation in enumerate(generated.allocations)
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(schedule)
    return schedule


def generate_and_persist(db: Session, *, name: str, days: list[int], slots: list[str]) -> Schedule:
    started = perf_counter()
    logger.info("EXAM SCHEDULE GENERATION START | name=%s | days=%s | slots=%s", name, days, slots)
    try:
        rooms, requests = load_engine_inputs(db)
        sessions = generate_schedule(exam_requests=requests, rooms=rooms, days=days, slots=slots)
        schedule = persist_schedule(db, name=name, days=days, slots=slots, sessions=sessions)
    except SchedulerError as exc:
        logger.warning(
            "EXAM SCHEDULE GENERATION REJECTED | name=%s | kind=%s | reason=%s | wall_ms=%s",
            name,
            exc.kind,
            exc.message,
            int((perf_counter() - started) * 1000),
        )
        raise
    except Exception:
        logger.exception(
            "EXAM SCHEDULE GENERATION FAILED | name=%s | wall_ms=%s",
            name,
            int((perf_counter() - started) * 1000),
        )
        raise
    logger.info(
        "EXAM SCHEDULE GENERATION COMPLETE | schedule_id=%s | sessions=%s | wall_ms=%s",
        schedule.id,
        len(sessions),
        int((perf_counter() - started) * 1000),
    )
    return schedule


def get_schedule(db: Session, schedule_id: str) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", schedule_id)
    return schedule


def get_latest_schedule(db: Session) -> Schedule | None:
    return db.execute(
        select(Schedule).order_by(Schedule.created_at.desc(), Schedule.id.desc()).limit(1)
    ).scalar_one_or_none()


def list_schedule_sessions(db: Session, schedule_id: str) -> list[ExamSession]:
    return list(
        db.execute(
            select(ExamSession).where(ExamSession.schedule_id == schedule_id).order_by(ExamSession.position)
        ).scalars()
    )


def allocations_by_session(db: Session, session_ids: list[str]) -> dict[str, list[ExamRoomAllocation]]:
    grouped: dict[str, list[ExamRoomAllocation]] = defaultdict(list)
    if not session_ids:
        return grouped
    rows = db.execute(
        select(ExamRoomAllocation)
        .where(ExamRoomAllocation.exam_session_id.in_(session_ids))
        .order_by(ExamRoomAllocation.position)
    ).scalars()
    for row in rows:
        grouped[row.exam_session_id].append(row)
    return grouped


def build_schedule_out(db: Session, schedule: Schedule) -> ScheduleOut:
    sessions = list_schedule_sessions(db, schedule.id)
    allocations = allocations_by_session(db, [item.id for item in sessions])
    courses = {item.id: item for item in db.execute(select(Course)).scalars()}
    departments = {item.id: item for item in db.execute(select(Department)).scalars()}
    teachers = {item.id: item for item in db.execute(select(Teacher)).scalars()}
    rooms = {item.id: item for item in db.execute(select(Room)).scalars()}

    def course_out(course_id: str) -> CourseOut | None:
        course = courses.get(course_id)
        if course is None:
            return None
        return CourseOut.from_model(course, departments.get(course.department_id))

    session_items: list[ExamSessionOut] = []
    for session in sessions:
        teacher = teachers.get(session.teacher_id)
        session_items.append(
            ExamSessionOut(
                id=session.id,
                course_id=session.course_id,
                teacher_id=session.teacher_id,
                day_of_week=session.day_of_week,
                slot_index=session.slot_index,
                start_minute_of_day=session.start_minute_of_day,
                end_minute_of_day=session.end_minute_of_day,
                duration_minutes=session.duration_minutes,
                start_time=minutes_to_time(session.start_minute_of_day),
                end_time=minutes_to_time(session.end_minute_of_day),
                course=course_out(session.course_id),
                teacher=ExamRequestTeacher(id=teacher.id, name=teacher.name) if teacher is not None else None,
                allocations=[
                    AllocationOut(
                        id=allocation.id,
                        room_id=allocation.room_id,
                        assigned_students=allocation.assigned_students,
                        room=RoomOut.model_validate(rooms[allocation.room_id])
                        if allocation.room_id in rooms
                        else None,
                    )
                    for allocation in allocations.get(session.id, [])
                ],
            )
        )

    return ScheduleOut(
        id=schedule.id,
        name=schedule.name,
        days=list(schedule.days or []),
        slots=list(schedule.slots or []),
        created_at=schedule.created_at,
        exam_sessions=session_items,
    )


def _timetable_days(schedule: Schedule) -> list[TimetableDay]:
    days = schedule.days
    if not isinstance(days, list) or not all(isinstance(day, int) for day in days):
        days = get_settings().default_exam_days
    return build_days(days)


def _render_schedule_timetable(
    schedule: Schedule,
    *,
    heading: str,
    sessions: list[ExamSession],
    events: list[TimetableEvent],
) -> bytes:
    settings = get_settings()
    slots = [str(item) for item in (schedule.slots or [])]
    start_hour, end_hour = compute_hour_range(
        ((session.start_minute_of_day, session.end_minute_of_day) for session in sessions),
        slots,
        default_start_hour=settings.pdf_default_start_hour,
        default_span_hours=settings.pdf_default_span_hours,
    )
    return render_timetable_pdf(
        header_lines=["EXAM TIMETABLE", heading, f"SCHEDULE: {schedule.name}"],
        days=_timetable_days(schedule),
        start_hour=start_hour,
        end_hour=end_hour,
        events=events,
        title=f"{heading} - {schedule.name}",
    )


def department_timetable_pdf(db: Session, schedule: Schedule, department: Department) -> bytes:
    course_ids = set(
        db.execute(select(Course.id).where(Course.department_id == department.id)).scalars()
    )
    sessions = [item for item in list_schedule_sessions(db, schedule.id) if item.course_id in course_ids]
    allocations = allocations_by_session(db, [item.id for item in sessions])
    courses = {item.id: item for item in db.execute(select(Course).where(Course.id.in_(list(course_ids)))).scalars()}
    teachers = {item.id: item for item in db.execute(select(Teacher)).scalars()}
    rooms = {item.id: item for item in db.execute(select(Room)).scalars()}

    events: list[TimetableEvent] = []
    for session in sessions:
        course = courses.get(session.course_id)
        teacher = teachers.get(session.teacher_id)
        room_names = ", ".join(
            rooms[item.room_id].name for item in allocations.get(session.id, []) if item.room_id in rooms
        )
        lines = [course.name if course else "", teacher.name if teacher else "", room_names]
        events.append(
            TimetableEvent(
                day_of_week=session.day_of_week,
                start_minute_of_day=session.start_minute_of_day,
                end_minute_of_day=session.end_minute_of_day,
                text="\n".join(line for line in lines if line),
            )
        )
    return _render_schedule_timetable(
        schedule,
        heading=f"DEPARTMENT: {department.name.upper()}",
        sessions=sessions,
        events=events,
    )


def room_timetable_pdf(db: Session, schedule: Schedule, room: Room) -> bytes:
    sessions_by_id = {item.id: item for item in list_schedule_sessions(db, schedule.id)}
    room_allocations = [
        item
        for item in db.execute(
            select(ExamRoomAllocation).where(ExamRoomAllocation.room_id == room.id)
        ).scalars()
        if item.exam_session_id in sessions_by_id
    ]
    courses = {item.id: item for item in db.execute(select(Course)).scalars()}
    teachers = {item.id: item for item in db.execute(select(Teacher)).scalars()}

    sessions: list[ExamSession] = []
    events: list[TimetableEvent] = []
    for allocation in room_allocations:
        session = sessions_by_id[allocation.exam_session_id]
        sessions.append(session)
        course = courses.get(session.course_id)
        teacher = teachers.get(session.teacher_id)
        lines = [
            course.name if course else "",
            teacher.name if teacher else "",
            f"{room.name} ({allocation.assigned_students}/{room.capacity})",
        ]
        events.append(
            TimetableEvent(
                day_of_week=session.day_of_week,
                start_minute_of_day=session.start_minute_of_day,
                end_minute_of_day=session.end_minute_of_day,
                text="\n".join(line for line in lines if line),
            )
        )
    return _render_schedule_timetable(
        schedule,
        heading=f"ROOM: {room.name.upper()}",
        sessions=sessions,
        events=events,
    )
