from examplanner.models.course import Course  # noqa: F401
from examplanner.models.department import Department  # noqa: F401
from examplanner.models.exam_request import ExamRequest  # noqa: F401
from examplanner.models.room import Room  # noqa: F401
from examplanner.models.schedule import ExamRoomAllocation, ExamSession, Schedule  # noqa: F401
from examplanner.models.teacher import Teacher, TeacherAvailability  # noqa: F401
