"""First-fit exam placement engine.

Given a snapshot of exam requests, rooms, candidate days and candidate slot
start labels, places every request on a (day, slot, rooms) combination such
that:

- the teacher is available on the day,
- no two overlapping exams share a department or a teacher,
- no room is used by two overlapping exams,
- the rooms assigned to an exam seat exactly its student count.

Requests are placed hardest-first and never revisited. The first admissible
day/slot wins, so the engine can report a failure for inputs that a different
ordering would have satisfied.

The module performs no I/O and keeps no state between calls.
"""

from __future__ import annotations

from collections import defaultdict
import logging
import re
from dataclasses import dataclass, field
from typing import Sequence

from examplanner.core.exceptions import (
    AlignmentError,
    CapacityError,
    FormatError,
    InputShapeError,
    PlacementError,
)

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
SLOT_LABEL_PATTERN = re.compile(r"^([0-9]{1,2}):([0-9]{2})$")


@dataclass(frozen=True)
class RoomInput:
    id: str
    name: str
    capacity: int


@dataclass(frozen=True)
class CourseInput:
    id: str
    code: str
    name: str
    department_id: str


@dataclass(frozen=True)
class TeacherInput:
    id: str
    name: str
    # 0=Monday .. 6=Sunday
    available_days: tuple[int, ...]


@dataclass(frozen=True)
class ExamRequestInput:
    id: str
    student_count: int
    duration_minutes: int
    course: CourseInput
    teacher: TeacherInput


@dataclass(frozen=True)
class Allocation:
    room_id: str
    assigned_students: int


@dataclass(frozen=True)
class GeneratedSession:
    course_id: str
    teacher_id: str
    day_of_week: int
    slot_index: int
    start_minute_of_day: int
    end_minute_of_day: int
    duration_minutes: int
    allocations: tuple[Allocation, ...]


@dataclass(frozen=True)
class CommittedSession:
    department_id: str
    teacher_id: str
    room_ids: frozenset[str]
    start: int
    end: int


def parse_slot_label(label: str) -> int | None:
    """Return the minute of day for an ``H:MM``/``HH:MM`` label, or None."""
    match = SLOT_LABEL_PATTERN.match(label.strip())
    if match is None:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    # half-open intervals [start, end)
    return a_start < b_end and b_start < a_end


def validate_inputs(
    days: Sequence[int],
    slots: Sequence[str],
    rooms: Sequence[RoomInput],
    requests: Sequence[ExamRequestInput],
) -> list[int]:
    """Check preconditions and return the slot start minutes in slot order."""
    if not days:
        raise InputShapeError("Day list is empty.")
    if not slots:
        raise InputShapeError("Slot list is empty.")
    if not rooms:
        raise InputShapeError("No rooms are defined.")
    if not requests:
        raise InputShapeError("There are no exam requests.")

    total_capacity = sum(room.capacity for room in rooms)
    for request in requests:
        if request.student_count > total_capacity:
            raise CapacityError(
                f"Total capacity is insufficient: {request.course.code} has "
                f"{request.student_count} students, total capacity is {total_capacity}.",
                details={
                    "course_code": request.course.code,
                    "student_count": request.student_count,
                    "total_capacity": total_capacity,
                },
            )

    slot_starts: list[int] = []
    for label in slots:
        minutes = parse_slot_label(label)
        if minutes is None:
            raise FormatError(
                f'Invalid slot format: "{label}". Example: 09:00',
                details={"slot": label},
            )
        if minutes % 60 != 0:
            raise AlignmentError(
                f'Slot must start on a whole hour: "{label}"',
                details={"slot": label},
            )
        slot_starts.append(minutes)
    return slot_starts


def prioritize_requests(requests: Sequence[ExamRequestInput]) -> list[ExamRequestInput]:
    """Hardest first: larger cohorts, then teachers with fewer available days.

    ``sorted`` is stable, so equal keys keep their input order.
    """
    return sorted(
        requests,
        key=lambda request: (-request.student_count, len(request.teacher.available_days)),
    )


def pack_rooms(free_rooms: Sequence[RoomInput], student_count: int) -> list[Allocation] | None:
    """Greedily fill rooms in the given order; None when they cannot seat everyone."""
    remaining = student_count
    allocations: list[Allocation] = []
    for room in free_rooms:
        if remaining <= 0:
            break
        take = min(remaining, room.capacity)
        allocations.append(Allocation(room_id=room.id, assigned_students=take))
        remaining -= take
    if remaining > 0:
        return None
    return allocations


@dataclass
class PlacementEngine:
    rooms: Sequence[RoomInput]
    days: Sequence[int]
    slot_starts: Sequence[int]
    committed_by_day: dict[int, list[CommittedSession]] = field(default_factory=lambda: defaultdict(list))
    sessions: list[GeneratedSession] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rooms_by_capacity = sorted(self.rooms, key=lambda room: -room.capacity)

    def _has_conflict(self, day: int, request: ExamRequestInput, start: int, end: int) -> bool:
        for committed in self.committed_by_day[day]:
            if not overlaps(start, end, committed.start, committed.end):
                continue
            if committed.department_id == request.course.department_id or committed.teacher_id == request.teacher.id:
                return True
        return False

    def _free_rooms(self, day: int, start: int, end: int) -> list[RoomInput]:
        occupied: set[str] = set()
        for committed in self.committed_by_day[day]:
            if overlaps(start, end, committed.start, committed.end):
                occupied.update(committed.room_ids)
        return [room for room in self.rooms_by_capacity if room.id not in occupied]

    def _commit(
        self,
        request: ExamRequestInput,
        day: int,
        slot_index: int,
        start: int,
        end: int,
        allocations: list[Allocation],
    ) -> GeneratedSession:
        self.committed_by_day[day].append(
            CommittedSession(
                department_id=request.course.department_id,
                teacher_id=request.teacher.id,
                room_ids=frozenset(item.room_id for item in allocations),
                start=start,
                end=end,
            )
        )
        session = GeneratedSession(
            course_id=request.course.id,
            teacher_id=request.teacher.id,
            day_of_week=day,
            slot_index=slot_index,
            start_minute_of_day=start,
            end_minute_of_day=end,
            duration_minutes=request.duration_minutes,
            allocations=tuple(allocations),
        )
        self.sessions.append(session)
        logger.debug(
            "EXAM PLACED | course=%s | day=%s | slot=%s | rooms=%s",
            request.course.code,
            day,
            slot_index,
            ",".join(item.room_id for item in allocations),
        )
        return session

    def place(self, request: ExamRequestInput) -> GeneratedSession:
        teacher_days = set(request.teacher.available_days)
        duration = request.duration_minutes
        for day in self.days:
            if day not in teacher_days:
                continue
            for slot_index, start in enumerate(self.slot_starts):
                end = start + duration
                if end > MINUTES_PER_DAY:
                    continue
                if self._has_conflict(day, request, start, end):
                    continue
                allocations = pack_rooms(self._free_rooms(day, start, end), request.student_count)
                if allocations is None:
                    continue
                return self._commit(request, day, slot_index, start, end, allocations)

        raise PlacementError(
            f"Could not place: {request.course.code} - {request.course.name}. "
            "(department/room/teacher availability constraints)",
            details={"course_code": request.course.code, "course_name": request.course.name},
        )


def generate_schedule(
    *,
    exam_requests: Sequence[ExamRequestInput],
    rooms: Sequence[RoomInput],
    days: Sequence[int],
    slots: Sequence[str],
) -> list[GeneratedSession]:
    """Place every exam request or raise a ``SchedulerError`` subclass.

    Sessions are returned in the order they were committed, which follows the
    priority order rather than the input order.
    """
    slot_starts = validate_inputs(days, slots, rooms, exam_requests)
    engine = PlacementEngine(rooms=rooms, days=days, slot_starts=slot_starts)
    for request in prioritize_requests(exam_requests):
        engine.place(request)
    logger.info(
        "EXAM SCHEDULE BUILT | requests=%s | days=%s | slots=%s | rooms=%s",
        len(exam_requests),
        len(days),
        len(slots),
        len(rooms),
    )
    return list(engine.sessions)
