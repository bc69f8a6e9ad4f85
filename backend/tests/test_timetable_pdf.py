from examplanner.services.timetable_pdf import (
    TimetableEvent,
    ascii_filename,
    build_days,
    compute_hour_range,
    content_disposition_attachment,
    render_timetable_pdf,
    to_ascii_text,
)


def test_text_is_folded_to_ascii():
    assert to_ascii_text("Çalışma  Şöğüt") == "Calisma Sogut"
    assert to_ascii_text("first \n second") == "first\nsecond"
    assert to_ascii_text(None) == ""
    assert to_ascii_text("日本") == ""


def test_filenames_are_safe():
    assert ascii_filename("department-Fizik Bölümü-schedule.pdf") == "department-Fizik-Bolumu-schedule.pdf"
    assert ascii_filename("///") == ""


def test_content_disposition_carries_both_filenames():
    header = content_disposition_attachment("ders programı.pdf")
    assert header == "attachment; filename=\"ders-programi.pdf\"; filename*=UTF-8''ders%20program%C4%B1.pdf"
    assert content_disposition_attachment("日本").startswith('attachment; filename="download.pdf"')


def test_build_days_sorts_and_labels():
    days = build_days([4, 0, 4, 9])
    assert [(day.day_of_week, day.label) for day in days] == [(0, "MONDAY"), (4, "FRIDAY"), (9, "DAY 9")]


def test_hour_range_covers_sessions_and_slots():
    assert compute_hour_range([(540, 600), (780, 870)], []) == (9, 15)
    assert compute_hour_range([(600, 660)], ["08:00", "bad"]) == (8, 11)
    assert compute_hour_range([], []) == (9, 17)
    assert compute_hour_range([], ["08:00"], default_span_hours=4) == (8, 12)
    assert compute_hour_range([(1320, 1440)], []) == (22, 24)


def test_render_produces_pdf_bytes():
    content = render_timetable_pdf(
        header_lines=["EXAM TIMETABLE", "ROOM: D-01"],
        days=build_days([0, 1, 2]),
        start_hour=9,
        end_hour=13,
        events=[
            TimetableEvent(day_of_week=0, start_minute_of_day=540, end_minute_of_day=660, text="Programlama\nAyşe"),
            TimetableEvent(day_of_week=1, start_minute_of_day=570, end_minute_of_day=630, text="off grid"),
            TimetableEvent(day_of_week=2, start_minute_of_day=720, end_minute_of_day=900, text="runs past the grid"),
        ],
        title="Room D-01",
    )
    assert content.startswith(b"%PDF")
    assert content.rstrip().endswith(b"%%EOF")
