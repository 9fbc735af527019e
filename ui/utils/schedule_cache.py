from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from modules.schedule_generator import Schedule
from modules.section_classifier import Section, SectionRole
from modules.time_model import MeetingTime


def _section_to_record(s: Section) -> Dict[str, Any]:
    return {
        "section_id": s.section_id,
        "role": s.role.value,
        "course_code": s.course_code,
        "meeting_times": [[mt.day, int(mt.start), int(mt.end)] for mt in s.meeting_times],
        "is_open": bool(s.is_open),
        "parent_lecture_id": s.parent_lecture_id,
        "type_label": s.type_label,
        "time_text": s.time_text,
        "days_text": s.days_text,
        "instructor": s.instructor,
        "location": s.location,
        "units": s.units,
        "has_unparseable_time": bool(s.has_unparseable_time),
    }


def _section_from_record(r: Dict[str, Any]) -> Section:
    return Section(
        section_id=str(r["section_id"]),
        role=SectionRole(r["role"]),
        course_code=str(r.get("course_code") or ""),
        meeting_times=tuple(MeetingTime(day=str(d), start=int(a), end=int(b)) for d, a, b in r.get("meeting_times") or []),
        is_open=bool(r.get("is_open", True)),
        parent_lecture_id=r.get("parent_lecture_id"),
        type_label=str(r.get("type_label") or ""),
        time_text=str(r.get("time_text") or ""),
        days_text=str(r.get("days_text") or ""),
        instructor=str(r.get("instructor") or ""),
        location=str(r.get("location") or ""),
        units=str(r.get("units") or ""),
        has_unparseable_time=bool(r.get("has_unparseable_time", False)),
    )


def schedules_to_records(schedules: Iterable[Schedule]) -> List[Dict[str, Any]]:
    """JSON-safe records for persisting generated schedules."""

    return [{"sections": [_section_to_record(s) for s in sched.sections]} for sched in schedules]


def schedules_from_records(records: Optional[List[Dict[str, Any]]]) -> List[Schedule]:
    """Rebuild schedules from stored records.

    Records that no longer match the model (e.g. written by an older version)
    are skipped rather than failing the whole load.
    """

    out: List[Schedule] = []
    for rec in records or []:
        try:
            sections = tuple(_section_from_record(r) for r in rec.get("sections") or [])
        except (KeyError, TypeError, ValueError):
            continue
        if sections:
            out.append(Schedule(sections=sections))
    return out
