"""Printable weekly exam timetables.

A timetable is a grid with one row per exam day and one column per hour.
Each exam occupies the hour cells it spans, starting from its start hour.
The built-in PDF fonts are not Unicode, so all text is folded to ASCII first.
"""

from __future__ import annotations

import io
import math
import re
from dataclasses import dataclass
from typing import Iterable, Sequence
from urllib.parse import quote

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from examplanner.services.scheduler import parse_slot_label

DAY_NAMES = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")

ASCII_FOLDING = str.maketrans(
    {
        "ı": "i",
        "İ": "I",
        "ş": "s",
        "Ş": "S",
        "ğ": "g",
        "Ğ": "G",
        "ü": "u",
        "Ü": "U",
        "ö": "o",
        "Ö": "O",
        "ç": "c",
        "Ç": "C",
    }
)

PAGE_MARGIN = 24
HEADER_HEIGHT = 70
DAY_COLUMN_WIDTH = 92
HOUR_ROW_HEIGHT = 26
MAX_DAY_ROW_HEIGHT = 70


@dataclass(frozen=True)
class TimetableDay:
    day_of_week: int
    label: str


@dataclass(frozen=True)
class TimetableEvent:
    day_of_week: int
    start_minute_of_day: int
    end_minute_of_day: int
    text: str


def to_ascii_text(value: str | None) -> str:
    folded = (value or "").translate(ASCII_FOLDING)
    # Keep newlines, replace any other non-ASCII character with a space.
    folded = re.sub(r"[^\n\r\x20-\x7e]", " ", folded)
    folded = re.sub(r"[ \t]+", " ", folded)
    folded = re.sub(r" *\n *", "\n", folded)
    return folded.strip()


def ascii_filename(value: str) -> str:
    folded = value.translate(ASCII_FOLDING)
    folded = re.sub(r"[^a-zA-Z0-9._-]+", "-", folded)
    folded = re.sub(r"-+", "-", folded).strip("-")
    return folded[:180]


def content_disposition_attachment(filename: str) -> str:
    fallback = ascii_filename(filename) or "download.pdf"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def build_days(days: Iterable[int]) -> list[TimetableDay]:
    unique = sorted({int(day) for day in days})
    return [
        TimetableDay(day_of_week=day, label=DAY_NAMES[day] if 0 <= day < len(DAY_NAMES) else f"DAY {day}")
        for day in unique
    ]


def compute_hour_range(
    intervals: Iterable[tuple[int, int]],
    slots: Sequence[str],
    *,
    default_start_hour: int = 9,
    default_span_hours: int = 8,
) -> tuple[int, int]:
    """Return ``(start_hour, end_hour)`` covering every interval and slot start."""
    starts: list[int] = []
    ends: list[int] = []
    for start, end in intervals:
        starts.append(start)
        ends.append(end)
    for label in slots:
        minutes = parse_slot_label(label)
        if minutes is not None:
            starts.append(minutes)

    min_start = min(starts) if starts else default_start_hour * 60
    max_end = max(ends) if ends else min_start + default_span_hours * 60

    start_hour = max(0, min(23, min_start // 60))
    end_hour = max(start_hour + 1, min(24, math.ceil(max_end / 60)))
    return start_hour, end_hour


def _draw_box(pdf: canvas.Canvas, x: float, top: float, width: float, height: float) -> None:
    pdf.rect(x, top - height, width, height, stroke=1, fill=0)


def _draw_centered_text(
    pdf: canvas.Canvas,
    text: str,
    x: float,
    top: float,
    width: float,
    height: float,
    *,
    font_size: float,
    bold: bool,
) -> None:
    font_name = "Helvetica-Bold" if bold else "Helvetica"
    leading = font_size * 1.2
    lines: list[str] = []
    for paragraph in (text or "").split("\n"):
        lines.extend(simpleSplit(paragraph, font_name, font_size, width) or [""])
    max_lines = max(1, int(height // leading))
    lines = lines[:max_lines]

    pdf.setFont(font_name, font_size)
    block_height = len(lines) * leading
    baseline = top - max(0.0, (height - block_height) / 2) - font_size
    for line in lines:
        pdf.drawCentredString(x + width / 2, baseline, line)
        baseline -= leading


def render_timetable_pdf(
    *,
    header_lines: Sequence[str],
    days: Sequence[TimetableDay],
    start_hour: int,
    end_hour: int,
    events: Sequence[TimetableEvent],
    title: str | None = None,
) -> bytes:
    buffer = io.BytesIO()
    page_width, page_height = landscape(A4)
    pdf = canvas.Canvas(buffer, pagesize=(page_width, page_height))
    if title:
        pdf.setTitle(to_ascii_text(title))
    pdf.setStrokeColor(colors.black)
    pdf.setLineWidth(1)

    left = PAGE_MARGIN
    top = page_height - PAGE_MARGIN
    table_width = page_width - 2 * PAGE_MARGIN

    _draw_box(pdf, left, top, table_width, HEADER_HEIGHT)
    header_text = to_ascii_text("\n".join(line for line in header_lines if line))
    _draw_centered_text(
        pdf, header_text, left + 10, top - 8, table_width - 20, HEADER_HEIGHT - 16, font_size=10, bold=True
    )

    table_top = top - HEADER_HEIGHT
    hour_count = max(1, end_hour - start_hour)
    column_width = (table_width - DAY_COLUMN_WIDTH) / hour_count
    available_height = table_top - PAGE_MARGIN - HOUR_ROW_HEIGHT
    row_height = min(MAX_DAY_ROW_HEIGHT, available_height / max(1, len(days)))

    _draw_box(pdf, left, table_top, DAY_COLUMN_WIDTH, HOUR_ROW_HEIGHT)
    for index in range(hour_count):
        x = left + DAY_COLUMN_WIDTH + index * column_width
        _draw_box(pdf, x, table_top, column_width, HOUR_ROW_HEIGHT)
        label = f"{start_hour + index:02d}:00-{start_hour + index + 1:02d}:00"
        _draw_centered_text(
            pdf, label, x + 2, table_top - 3, column_width - 4, HOUR_ROW_HEIGHT - 6, font_size=8, bold=True
        )

    events_by_day: dict[int, list[TimetableEvent]] = {}
    for event in events:
        events_by_day.setdefault(event.day_of_week, []).append(event)

    grid_start_minute = start_hour * 60
    for row_index, day in enumerate(days):
        y = table_top - HOUR_ROW_HEIGHT - row_index * row_height
        _draw_box(pdf, left, y, DAY_COLUMN_WIDTH, row_height)
        _draw_centered_text(
            pdf, to_ascii_text(day.label), left + 4, y - 4, DAY_COLUMN_WIDTH - 8, row_height - 8, font_size=7.5, bold=True
        )

        # Only whole-hour starts inside the displayed range get a cell.
        by_column: dict[int, TimetableEvent] = {}
        for event in sorted(events_by_day.get(day.day_of_week, []), key=lambda item: item.start_minute_of_day):
            if event.start_minute_of_day % 60 != 0:
                continue
            column = (event.start_minute_of_day - grid_start_minute) // 60
            if 0 <= column < hour_count:
                by_column[column] = event

        column = 0
        while column < hour_count:
            x = left + DAY_COLUMN_WIDTH + column * column_width
            event = by_column.get(column)
            if event is None:
                _draw_box(pdf, x, y, column_width, row_height)
                column += 1
                continue
            span_hours = max(1, math.ceil((event.end_minute_of_day - event.start_minute_of_day) / 60))
            span = min(span_hours, hour_count - column)
            width = span * column_width
            _draw_box(pdf, x, y, width, row_height)
            _draw_centered_text(
                pdf, to_ascii_text(event.text), x + 3, y - 4, width - 6, row_height - 8, font_size=7.2, bold=False
            )
            column += span

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
