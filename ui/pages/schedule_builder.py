"""Schedule Builder page.

Fetches the requested courses, generates a diverse sample of conflict-free
weekly schedules and lets the user browse them.

Outputs:
- Seat availability per course
- Generation metrics
- Weekly calendar of the selected schedule (with previous/next navigation)
- Markdown / Excel / PNG export

The most recent result is stored in SQLite and restored on the next visit
(for up to 7 days).

"""

from __future__ import annotations

import html
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import streamlit as st
import structlog

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.schedule_generator import GenerationSettings, Schedule, generate_schedules
from scraper import CourseFetcher, default_fetcher_config
from ui.database import crud
from ui.database.db import db_session
from ui.utils.schedule_cache import schedules_from_records, schedules_to_records
from ui.utils.validators import validate_course_codes, validate_positive_int
from utils.timetable_export import (
    FIRST_HOUR,
    LAST_HOUR,
    PIXELS_PER_HOUR,
    ImageExportOptions,
    availability_stats_df,
    calendar_blocks,
    df_to_markdown,
    hour_labels,
    schedule_grid_df,
    schedule_sections_df,
    schedule_to_png_bytes,
    schedules_workbook_bytes,
)


logger = structlog.get_logger()


MIN_SAMPLE = 5
MAX_SAMPLE = 50

_COLORS = ("#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#ec4899", "#14b8a6", "#f97316")


def _run_generation(
    input_text: str,
    settings: GenerationSettings,
    *,
    fetcher=None,
) -> Dict[str, Any]:
    """Fetch, generate and persist one result.

    Returns a dict with keys: schedules, metrics, availability, errors.
    Invalid input never reaches the fetcher.
    """

    codes, errors = validate_course_codes(input_text)
    if errors:
        return {"schedules": [], "metrics": {}, "availability": pd.DataFrame(), "errors": errors}

    ok, msg = validate_positive_int(settings.max_schedules, "Number of schedules", MIN_SAMPLE, MAX_SAMPLE)
    if not ok:
        return {"schedules": [], "metrics": {}, "availability": pd.DataFrame(), "errors": [msg]}

    logger.info("generation_requested", courses=codes, max_schedules=settings.max_schedules, only_open=settings.only_open)
    fetcher = fetcher or CourseFetcher(default_fetcher_config())
    listings = fetcher.fetch_courses(codes)

    fetch_errors = [f"{l.course_code}: {l.error}" for l in listings if l.error]
    availability = availability_stats_df([l for l in listings if not l.error])

    schedules, metrics = generate_schedules(listings, settings)

    with db_session() as conn:
        crud.save_last_result(
            conn,
            schedules=schedules_to_records(schedules),
            input_text=input_text,
            fetched_stats=availability.to_dict(orient="records"),
            metrics=metrics,
        )

    return {"schedules": schedules, "metrics": metrics, "availability": availability, "errors": fetch_errors}


def _restore_last_result() -> Optional[Dict[str, Any]]:
    with db_session() as conn:
        stored = crud.load_last_result(conn)
    if stored is None:
        return None

    return {
        "schedules": schedules_from_records(stored["schedules"]),
        "metrics": stored["metrics"],
        "availability": pd.DataFrame(stored["fetched_stats"]),
        "errors": [],
        "input_text": stored["input_text"],
        "current_index": int(stored["current_index"]),
        "saved_at": stored["saved_at"],
    }


def _persist_index(index: int) -> None:
    with db_session() as conn:
        crud.update_current_index(conn, index)


def _step_index(current: int, delta: int, total: int) -> int:
    """Previous/next without wrapping."""

    if total <= 0:
        return 0
    return max(0, min(total - 1, int(current) + int(delta)))


def _calendar_html(schedule: Schedule) -> str:
    """Absolute-positioned weekly calendar (one block per meeting)."""

    colors: Dict[str, str] = {}
    for code in schedule.course_codes:
        colors[code] = _COLORS[len(colors) % len(_COLORS)]

    by_cell: Dict[tuple, List] = {}
    for b in calendar_blocks(schedule):
        by_cell.setdefault((b.hour_row, b.day_column), []).append(b)

    days = ["Mon", "Tue", "Wed", "Thu", "Fri"]
    head = "".join(f"<th>{d}</th>" for d in days)

    body = []
    for r, label in enumerate(hour_labels(FIRST_HOUR, LAST_HOUR)):
        cells = []
        for c in range(len(days)):
            blocks = "".join(
                f'<div class="sb-block" style="top:{b.top_px:.0f}px;height:{b.height_px:.0f}px;'
                f'background:{colors.get(b.course_code, _COLORS[0])}" title="{html.escape(b.tooltip)}">'
                f"<b>{html.escape(b.label)}</b><br/>{html.escape(b.time_label)}</div>"
                for b in by_cell.get((r, c), [])
            )
            cells.append(f'<td class="sb-cell">{blocks}</td>')
        body.append(f'<tr><td class="sb-time">{label}</td>{"".join(cells)}</tr>')

    return (
        "<style>"
        ".sb-cal{border-collapse:collapse;width:100%;table-layout:fixed}"
        ".sb-cal th,.sb-cal td{border:1px solid rgba(128,128,128,0.3);padding:0}"
        f".sb-cell{{position:relative;height:{PIXELS_PER_HOUR}px}}"
        ".sb-time{width:80px;font-size:0.75rem;vertical-align:top;padding:2px 4px}"
        ".sb-block{position:absolute;left:2px;right:2px;z-index:1;border-radius:4px;"
        "color:white;font-size:0.7rem;padding:2px 4px;overflow:hidden}"
        "</style>"
        f'<table class="sb-cal"><tr><th></th>{head}</tr>{"".join(body)}</table>'
    )


def _render_availability(availability: pd.DataFrame) -> None:
    if availability is None or availability.empty:
        return

    st.subheader("Seat availability")
    for _, row in availability.iterrows():
        c1, c2 = st.columns([1, 3])
        c1.markdown(f"**{row['course_code']}**")
        if row["status"] == "All sections full":
            c2.error(f"{row['status']} ({row['details']})")
        else:
            c2.write(f"{row['status']} ({row['details']})")


def _render_metrics(metrics: Dict[str, Any]) -> None:
    if not metrics:
        return

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Courses", int(metrics.get("courses", 0)))
    c2.metric("Schedules explored", int(metrics.get("enumerated", 0)))
    c3.metric("Lecture combinations", int(metrics.get("lecture_combinations", 0)))
    c4.metric("Schedules shown", int(metrics.get("returned", 0)))

    if metrics.get("truncated"):
        st.caption("Search stopped at the exploration cap; the sample is drawn from the schedules found so far.")
    skipped = metrics.get("skipped_courses") or []
    if skipped:
        st.warning(f"Skipped courses with no usable sections: {', '.join(skipped)}")
    if int(metrics.get("unparseable_time_sections", 0) or 0):
        st.caption(f"{metrics['unparseable_time_sections']} section(s) had an unreadable time and were treated as TBA.")


def _empty_result_message(metrics: Dict[str, Any]) -> str:
    if not int(metrics.get("courses", 0) or 0):
        return "Could not load any of the requested courses. Check the format (e.g., CSCI-350)."
    return "No valid schedules found: every combination has a time conflict."


def _render_schedules(schedules: Sequence[Schedule], availability: pd.DataFrame, metrics: Dict[str, Any]) -> None:
    if not schedules:
        st.info(_empty_result_message(metrics))
        return

    total = len(schedules)
    idx = _step_index(int(st.session_state.get("builder_index", 0)), 0, total)

    c1, c2, c3 = st.columns([1, 2, 1])
    if c1.button("← Previous", disabled=idx <= 0):
        idx = _step_index(idx, -1, total)
        _persist_index(idx)
    if c3.button("Next →", disabled=idx >= total - 1):
        idx = _step_index(idx, 1, total)
        _persist_index(idx)
    st.session_state["builder_index"] = idx
    c2.markdown(f"**Schedule {idx + 1} of {total}**")

    sched = schedules[idx]
    st.markdown(_calendar_html(sched), unsafe_allow_html=True)

    tba = [s for s in sched.sections if s.is_tba]
    if tba:
        st.caption("TBA: " + ", ".join(f"{s.course_code} ({s.section_id})" for s in tba))

    sections = schedule_sections_df(sched)
    st.dataframe(sections, use_container_width=True, hide_index=True)

    d1, d2, d3 = st.columns(3)
    d1.download_button(
        "Download schedule (Markdown)",
        data=(df_to_markdown(sections) + "\n" + df_to_markdown(schedule_grid_df(sched))).encode("utf-8"),
        file_name=f"schedule_{idx + 1}.md",
        mime="text/markdown",
    )
    d2.download_button(
        "Download all schedules (Excel)",
        data=schedules_workbook_bytes(schedules, availability=availability),
        file_name="schedules.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    d3.download_button(
        "Download calendar (PNG)",
        data=schedule_to_png_bytes(sched, options=ImageExportOptions(title=f"Schedule {idx + 1}")),
        file_name=f"schedule_{idx + 1}.png",
        mime="image/png",
    )


def main() -> None:
    st.title("Schedule Builder")
    st.caption("Enter course codes to generate conflict-free weekly schedules.")

    if "builder_result" not in st.session_state:
        st.session_state["builder_result"] = _restore_last_result()
        restored = st.session_state["builder_result"]
        if restored is not None:
            st.session_state["builder_index"] = restored["current_index"]
            st.session_state.setdefault("builder_input", restored["input_text"])

    st.session_state.setdefault("builder_input", "")
    st.session_state.setdefault("builder_max_schedules", 20)
    st.session_state.setdefault("builder_only_open", False)

    input_text = st.text_input("Course codes (comma-separated)", key="builder_input", placeholder="CSCI-350, MATH-225")

    c1, c2 = st.columns([3, 1])
    max_schedules = c1.slider("Number of schedules", MIN_SAMPLE, MAX_SAMPLE, key="builder_max_schedules")
    only_open = c2.checkbox("Only open sections", key="builder_only_open")

    b1, b2 = st.columns([1, 1])
    run = b1.button("Generate schedules", type="primary")
    clear = b2.button("Clear saved result", type="secondary")

    if clear:
        with db_session() as conn:
            crud.clear_last_result(conn)
        st.session_state["builder_result"] = None
        st.session_state["builder_index"] = 0
        st.success("Saved result cleared.")

    if run:
        settings = GenerationSettings(max_schedules=int(max_schedules), only_open=bool(only_open))
        with st.spinner("Fetching courses and generating schedules..."):
            result = _run_generation(input_text, settings)
        st.session_state["builder_result"] = result
        st.session_state["builder_index"] = 0

    result = st.session_state.get("builder_result")
    if not result:
        return

    for err in result.get("errors") or []:
        st.error(err)
    if result.get("saved_at") is not None:
        st.caption(f"Restored from {result['saved_at']:%Y-%m-%d %H:%M} UTC")

    _render_availability(result.get("availability"))
    _render_metrics(result.get("metrics") or {})
    if result.get("metrics"):
        _render_schedules(result.get("schedules") or [], result.get("availability"), result["metrics"])


if __name__ == "__main__":
    main()
