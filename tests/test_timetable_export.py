from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import io

import pandas as pd
from openpyxl import load_workbook

from modules.schedule_generator import Schedule
from modules.section_classifier import CourseListing, RawSection, Section, SectionRole
from modules.time_model import build_meeting_times
from utils.timetable_export import (
    availability_stats_df,
    calendar_blocks,
    df_to_markdown,
    hour_labels,
    schedule_grid_df,
    schedules_overview_df,
    schedule_to_png_bytes,
    schedules_workbook_bytes,
)


def _section(sid: str, role: SectionRole, time: str, days: str, code: str = "CSCI-350", is_open: bool = True) -> Section:
    return Section(
        section_id=sid,
        role=role,
        course_code=code,
        meeting_times=build_meeting_times(time, days),
        is_open=is_open,
        type_label=role.value,
        time_text=time,
        days_text=days,
    )


def _schedule() -> Schedule:
    return Schedule(
        sections=(
            _section("30300", SectionRole.LECTURE, "10:30am-11:50am", "TTh"),
            _section("30301", SectionRole.DISCUSSION, "2:00pm-2:50pm", "F", is_open=False),
            _section("39500", SectionRole.LECTURE, "TBA", "TBA", code="MATH-225"),
        )
    )


def test_df_to_markdown_basic() -> None:
    df = pd.DataFrame([["A", "B"], ["C", "D"]], columns=["Col1", "Col2"])
    md = df_to_markdown(df)
    assert "| Col1 | Col2 |" in md
    assert "| A | B |" in md


def test_hour_labels_span_eight_to_eight() -> None:
    labels = hour_labels()
    assert labels[0] == "8:00 AM"
    assert labels[-1] == "8:00 PM"
    assert len(labels) == 13


def test_calendar_blocks_geometry() -> None:
    blocks = calendar_blocks(_schedule())

    # two lecture meetings + one discussion; the TBA lecture has no block
    assert len(blocks) == 3

    tue = next(b for b in blocks if b.day == "T")
    assert tue.day_column == 1
    assert tue.hour_row == 2  # 10 AM
    assert tue.top_px == 20.0  # 30 min into the hour at 40px/hour
    assert tue.height_px == 80 / 60 * 40 - 4
    assert tue.label == "CSCI-350 (30300)"
    assert tue.time_label == "10:30 AM"

    fri = next(b for b in blocks if b.day == "F")
    assert fri.day_column == 4
    assert fri.hour_row == 6
    assert fri.height_px == 50 / 60 * 40 - 4


def test_calendar_blocks_skip_meetings_outside_grid() -> None:
    sched = Schedule(sections=(_section("1", SectionRole.LECTURE, "7:00am-7:50am", "M"),))
    assert calendar_blocks(sched) == []


def test_schedule_grid_df_places_labels() -> None:
    df = schedule_grid_df(_schedule())

    assert list(df.columns) == ["Time", "Mon", "Tue", "Wed", "Thu", "Fri"]
    row = df[df["Time"] == "10:00 AM"].iloc[0]
    assert row["Tue"] == "CSCI-350 (30300) 10:30 AM"
    assert row["Thu"] == "CSCI-350 (30300) 10:30 AM"
    assert row["Mon"] == ""


def test_availability_stats_df() -> None:
    listings = [
        CourseListing(
            course_code="CSCI-350",
            sections=(
                RawSection(section_id="1", type_label="Lecture", is_open=True),
                RawSection(section_id="2", type_label="Discussion", is_open=False),
                RawSection(section_id="3", type_label="Discussion", is_open=True),
            ),
        ),
        CourseListing(
            course_code="MATH-225",
            sections=(RawSection(section_id="4", type_label="Lecture", is_open=False),),
        ),
    ]

    df = availability_stats_df(listings).set_index("course_code")

    assert df.loc["CSCI-350", "status"] == "2 of 3 open"
    assert df.loc["CSCI-350", "details"] == "Lecture: 1/1, Discussion: 1/2"
    assert df.loc["MATH-225", "status"] == "All sections full"


def test_schedules_overview_and_workbook() -> None:
    schedules = [_schedule(), _schedule()]

    overview = schedules_overview_df(schedules)
    assert list(overview["schedule"]) == [1, 2]
    assert overview.loc[0, "closed_sections"] == 1
    assert overview.loc[0, "lectures"] == "CSCI-350:30300, MATH-225:39500"

    data = schedules_workbook_bytes(schedules)
    wb = load_workbook(io.BytesIO(data))
    assert wb.sheetnames == ["Overview", "Schedule 1", "Schedule 2"]


def test_schedule_to_png_bytes() -> None:
    data = schedule_to_png_bytes(_schedule())
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
