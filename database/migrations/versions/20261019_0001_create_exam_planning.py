"""create exam planning tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "departments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_departments_name", "departments", ["name"], unique=True)

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        *_timestamps(),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"], unique=True)

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "teacher_availability",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.UniqueConstraint("teacher_id", "day_of_week", name="uq_teacher_availability_teacher_day"),
    )
    op.create_index("ix_teacher_availability_teacher_id", "teacher_availability", ["teacher_id"])

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=False),
        sa.Column("class_level", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index("ix_courses_code", "courses", ["code"], unique=True)
    op.create_index("ix_courses_department_id", "courses", ["department_id"])

    op.create_table(
        "exam_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("student_count", sa.Integer(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        *_timestamps(),
    )
    op.create_index("ix_exam_requests_course_id", "exam_requests", ["course_id"])
    op.create_index("ix_exam_requests_teacher_id", "exam_requests", ["teacher_id"])

    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("days", sa.JSON(), nullable=False),
        sa.Column("slots", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_schedules_created_at", "schedules", ["created_at"])

    op.create_table(
        "exam_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("schedule_id", sa.String(length=36), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("slot_index", sa.Integer(), nullable=False),
        sa.Column("start_minute_of_day", sa.Integer(), nullable=False),
        sa.Column("end_minute_of_day", sa.Integer(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_exam_sessions_schedule_id", "exam_sessions", ["schedule_id"])
    op.create_index("ix_exam_sessions_course_id", "exam_sessions", ["course_id"])
    op.create_index("ix_exam_sessions_teacher_id", "exam_sessions", ["teacher_id"])

    op.create_table(
        "exam_room_allocations",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("exam_session_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("assigned_students", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_exam_room_allocations_exam_session_id", "exam_room_allocations", ["exam_session_id"])
    op.create_index("ix_exam_room_allocations_room_id", "exam_room_allocations", ["room_id"])


def downgrade() -> None:
    op.drop_table("exam_room_allocations")
    op.drop_table("exam_sessions")
    op.drop_table("schedules")
    op.drop_table("exam_requests")
    op.drop_table("courses")
    op.drop_table("teacher_availability")
    op.drop_table("teachers")
    op.drop_table("rooms")
    op.drop_table("departments")
