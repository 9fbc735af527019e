from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import pandas as pd
import structlog

from modules.time_model import DAY_NAMES, DAY_TOKENS, format_minutes


logger = structlog.get_logger()


FIRST_HOUR = 8  # 8 AM
LAST_HOUR = 20  # 8 PM (last row)
PIXELS_PER_HOUR = 40
BLOCK_MARGIN_PX = 4


def hour_labels(first_hour: int = FIRST_HOUR, last_hour: int = LAST_HOUR) -> List[str]:
    """['8:00 AM', '9:00 AM', ..., '8:00 PM']."""

    return [format_minutes(h * 60) for h in range(int(first_hour), int(last_hour) + 1)]


def section_label(section) -> str:
    return f"{section.course_code or 'Unknown'} ({section.section_id})"


@dataclass(frozen=True)
class CalendarBlock:
    course_code: str
    section_id: str
    role: str
    day: str  # day token (M/T/W/Th/F)
    day_column: int  # 0 = Mon
    hour_row: int  # 0 = FIRST_HOUR
    top_px: float  # offset inside the start-hour row
    height_px: float
    label: str
    time_label: str
    tooltip: str


def calendar_blocks(
    schedule,
    *,
    pixels_per_hour: int = PIXELS_PER_HOUR,
    first_hour: int = FIRST_HOUR,
    last_hour: int = LAST_HOUR,
) -> List[CalendarBlock]:
    """Project a schedule onto the weekly grid.

    One block per meeting: placed in its day column and start-hour row, shifted
    down in proportion to the start minutes, sized by duration.
    TBA sections and meetings outside the grid produce no block.
    """

    blocks: List[CalendarBlock] = []
    for s in schedule.sections:
        if not s.meeting_times:
            logger.debug("calendar_skip_tba", course=s.course_code, section=s.section_id)
            continue

        for mt in s.meeting_times:
            start_hour, start_min = divmod(int(mt.start), 60)
            if start_hour < first_hour or start_hour > last_hour or mt.day not in DAY_TOKENS:
                logger.warning(
                    "calendar_meeting_outside_grid",
                    course=s.course_code,
                    section=s.section_id,
                    day=mt.day,
                    start=format_minutes(mt.start),
                )
                continue

            duration_hours = (int(mt.end) - int(mt.start)) / 60.0
            blocks.append(
                CalendarBlock(
                    course_code=s.course_code,
                    section_id=s.section_id,
                    role=s.role.value,
                    day=mt.day,
                    day_column=DAY_TOKENS.index(mt.day),
                    hour_row=start_hour - int(first_hour),
                    top_px=start_min / 60.0 * pixels_per_hour,
                    height_px=duration_hours * pixels_per_hour - BLOCK_MARGIN_PX,
                    label=section_label(s),
                    time_label=format_minutes(mt.start),
                    tooltip=(
                        f"{s.course_code} - {s.type_label or s.role.value}\n"
                        f"{s.time_text} on {s.days_text}\n"
                        f"Section {s.section_id}\n"
                        f"{s.instructor} @ {s.location}"
                    ),
                )
            )
    return blocks


def schedule_grid_df(schedule, *, first_hour: int = FIRST_HOUR, last_hour: int = LAST_HOUR) -> pd.DataFrame:
    """Spreadsheet-style weekly grid (rows = hours, columns = Mon..Fri)."""

    rows = hour_labels(first_hour, last_hour)
    days = [DAY_NAMES[d] for d in DAY_TOKENS]
    table = [["" for _ in days] for _ in rows]

    for b in calendar_blocks(schedule, first_hour=first_hour, last_hour=last_hour):
        cell = table[b.hour_row][b.day_column]
        text = f"{b.label} {b.time_label}"
        table[b.hour_row][b.day_column] = f"{cell}\n{text}" if cell else text

    df = pd.DataFrame(table, columns=days)
    df.insert(0, "Time", rows)
    return df


def schedule_sections_df(schedule) -> pd.DataFrame:
    from modules.schedule_generator import format_schedule_as_rows

    return pd.DataFrame(format_schedule_as_rows(schedule))


def schedules_overview_df(schedules: Sequence) -> pd.DataFrame:
    """One row per schedule: the lecture combination and every chosen section."""

    rows = []
    for i, sched in enumerate(schedules, start=1):
        rows.append(
            {
                "schedule": i,
                "sections": len(sched.sections),
                "lectures": ", ".join(sched.lecture_combination),
                "all_sections": ", ".join(section_label(s) for s in sched.sections),
                "closed_sections": sum(1 for s in sched.sections if not s.is_open),
            }
        )
    return pd.DataFrame(rows)


def availability_stats_df(listings: Iterable) -> pd.DataFrame:
    """Per-course seat availability with a per-type breakdown."""

    rows = []
    for listing in listings:
        sections = list(listing.sections)
        total = len(sections)
        open_count = sum(1 for s in sections if s.is_open)

        if total and open_count == 0:
            status = "All sections full"
        else:
            status = f"{open_count} of {total} open"

        by_type: dict = {}
        for s in sections:
            t = s.type_label or "Unknown"
            counts = by_type.setdefault(t, [0, 0])
            counts[1] += 1
            if s.is_open:
                counts[0] += 1

        rows.append(
            {
                "course_code": listing.course_code or "Unknown",
                "title": listing.course_title,
                "open": open_count,
                "total": total,
                "status": status,
                "details": ", ".join(f"{t}: {o}/{n}" for t, (o, n) in by_type.items()),
            }
        )
    return pd.DataFrame(rows, columns=["course_code", "title", "open", "total", "status", "details"])


def _safe_sheet_name(name: str) -> str:
    """Excel sheet names: max 31 chars, cannot contain: `: \\ / ? * [ ]`."""

    bad = [":", "\\", "/", "?", "*", "[", "]"]
    out = str(name or "Sheet")
    for b in bad:
        out = out.replace(b, "-")
    out = out.strip() or "Sheet"
    return out[:31]


def schedules_workbook_bytes(schedules: Sequence, *, availability: Optional[pd.DataFrame] = None) -> bytes:
    """Multi-sheet Excel workbook: overview, optional availability, one sheet per schedule."""

    # Pandas uses openpyxl to write .xlsx by default.
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        schedules_overview_df(schedules).to_excel(writer, sheet_name=_safe_sheet_name("Overview"), index=False)
        if availability is not None and not availability.empty:
            availability.to_excel(writer, sheet_name=_safe_sheet_name("Availability"), index=False)

        for i, sched in enumerate(schedules, start=1):
            sheet = _safe_sheet_name(f"Schedule {i}")
            sections = schedule_sections_df(sched)
            sections.to_excel(writer, sheet_name=sheet, index=False, startrow=0)
            schedule_grid_df(sched).to_excel(writer, sheet_name=sheet, index=False, startrow=len(sections) + 2)

    return out.getvalue()


def df_to_markdown(df: pd.DataFrame) -> str:
    """Convert DataFrame to a GitHub-flavored Markdown table."""

    # pandas to_markdown requires tabulate; keep a small renderer instead.
    cols = list(df.columns)
    rows = df.astype(str).values.tolist()

    def esc(s: str) -> str:
        return str(s).replace("\n", " ").replace("|", "\\|")

    header = "| " + " | ".join(esc(c) for c in cols) + " |"
    sep = "| " + " | ".join(["---"] * len(cols)) + " |"
    body = ["| " + " | ".join(esc(v) for v in r) + " |" for r in rows]
    return "\n".join([header, sep] + body) + "\n"


@dataclass(frozen=True)
class ImageExportOptions:
    title: Optional[str] = None
    font_size: int = 7
    day_width: float = 1.8  # inches per day column
    hour_height: float = 0.5  # inches per hour row


def schedule_to_png_bytes(schedule, *, options: ImageExportOptions = ImageExportOptions()) -> bytes:
    """Render the weekly calendar of a schedule as a PNG image (bytes).

    Draws the same blocks as `calendar_blocks`, in hour units instead of pixels.
    """

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    from matplotlib.patches import Rectangle

    n_days = len(DAY_TOKENS)
    n_hours = LAST_HOUR - FIRST_HOUR + 1

    fig, ax = plt.subplots(figsize=(options.day_width * n_days + 1.0, options.hour_height * n_hours + 0.8))
    ax.set_xlim(0, n_days)
    ax.set_ylim(n_hours, 0)
    ax.set_xticks([i + 0.5 for i in range(n_days)])
    ax.set_xticklabels([DAY_NAMES[d] for d in DAY_TOKENS], fontsize=options.font_size + 1)
    ax.set_yticks(range(n_hours))
    ax.set_yticklabels(hour_labels(), fontsize=options.font_size)
    ax.xaxis.tick_top()
    ax.grid(True, linewidth=0.4, alpha=0.5)

    if options.title:
        ax.set_title(options.title, fontsize=options.font_size + 3, pad=18)

    colors = plt.get_cmap("tab10")
    course_index = {code: i for i, code in enumerate(schedule.course_codes)}

    # pixels_per_hour=1 => offsets and heights in hour units
    for b in calendar_blocks(schedule, pixels_per_hour=1):
        top = b.hour_row + b.top_px
        height = b.height_px + BLOCK_MARGIN_PX  # undo the pixel margin
        ax.add_patch(
            Rectangle(
                (b.day_column + 0.04, top + 0.02),
                0.92,
                max(0.1, height - 0.04),
                facecolor=colors(course_index.get(b.course_code, 0) % 10),
                edgecolor="white",
                alpha=0.9,
            )
        )
        ax.text(
            b.day_column + 0.08,
            top + 0.08,
            f"{b.label}\n{b.time_label}",
            fontsize=options.font_size,
            color="white",
            va="top",
        )

    buf = io.BytesIO()
    fig.tight_layout()
    fig.savefig(buf, format="png", dpi=200, bbox_inches="tight")
    plt.close(fig)
    return buf.getvalue()
