"""Section classification and lecture/discussion linking.

Raw listings arrive as one ordered list of sections per course, each with a
free-text type label ("Lecture", "Discussion", "Quiz", "Lab", ...). This module:

1. assigns each section a role (sections with an unknown label are dropped)
2. partitions a course into role pools (lectures/discussions/quizzes/labs)
3. infers the course's *linking pattern* from the original listing order

Linking patterns
----------------
- COMBINED: a "Lecture-Discussion" section exists and there are no standalone
  discussions; the lecture slot covers the discussion requirement.
- NO_DISCUSSIONS: no discussions at all.
- SINGLE_LECTURE: one lecture; every discussion/lab points at it (informational).
- INTERLEAVED: lecture and discussion blocks alternate
  (``Lec, Dis, Lec, Dis``); a discussion may only pair with the lecture listed
  right before it.
- GROUPED: all lectures before all discussions (``Lec, Lec, Dis, Dis``); any
  discussion pairs with any lecture. Also the fallback for anything ambiguous.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from .time_model import MeetingTime, build_meeting_times, is_unparseable


logger = structlog.get_logger()


# ----------------------------
# Input records
# ----------------------------


@dataclass(frozen=True)
class RawSection:
    section_id: str
    type_label: str
    time: str = ""
    days: str = ""
    instructor: str = ""
    location: str = ""
    units: str = ""
    registered: int = 0
    seats: int = 0
    is_open: bool = True


@dataclass(frozen=True)
class CourseListing:
    course_code: str
    course_title: str = ""
    sections: Tuple[RawSection, ...] = ()
    # set by the fetcher when the course could not be loaded
    error: Optional[str] = None


# ----------------------------
# Classified model
# ----------------------------


class SectionRole(str, Enum):
    LECTURE = "Lecture"
    DISCUSSION = "Discussion"
    QUIZ = "Quiz"
    LAB = "Lab"
    LECTURE_DISCUSSION = "Lecture-Discussion"

    @property
    def is_lecture(self) -> bool:
        return self in (SectionRole.LECTURE, SectionRole.LECTURE_DISCUSSION)


class LinkingPattern(str, Enum):
    GROUPED = "GROUPED"
    INTERLEAVED = "INTERLEAVED"
    SINGLE_LECTURE = "SINGLE_LECTURE"
    COMBINED = "COMBINED"
    NO_DISCUSSIONS = "NO_DISCUSSIONS"


@dataclass(frozen=True)
class Section:
    section_id: str
    role: SectionRole
    course_code: str
    meeting_times: Tuple[MeetingTime, ...] = ()
    is_open: bool = True
    parent_lecture_id: Optional[str] = None

    # Display-only fields (calendar, exports)
    type_label: str = ""
    time_text: str = ""
    days_text: str = ""
    instructor: str = ""
    location: str = ""
    units: str = ""
    has_unparseable_time: bool = False

    @property
    def key(self) -> str:
        """Identifier qualified by course code (ids are only unique per course)."""

        return f"{self.course_code}:{self.section_id}"

    @property
    def is_tba(self) -> bool:
        return not self.meeting_times


@dataclass(frozen=True)
class Course:
    code: str
    title: str
    linking_pattern: LinkingPattern
    lectures: Tuple[Section, ...] = ()
    discussions: Tuple[Section, ...] = ()
    quizzes: Tuple[Section, ...] = ()
    labs: Tuple[Section, ...] = ()
    dropped_labels: Tuple[str, ...] = field(default=())

    @property
    def sections(self) -> Tuple[Section, ...]:
        return self.lectures + self.discussions + self.quizzes + self.labs

    @property
    def unparseable_time_count(self) -> int:
        return sum(1 for s in self.sections if s.has_unparseable_time)

    def open_only(self) -> Course:
        """The same course restricted to open sections.

        Pattern and parent links come from the full listing, so a discussion of
        a closed lecture is dropped rather than re-paired.
        """

        def _open(pool: Tuple[Section, ...]) -> Tuple[Section, ...]:
            return tuple(s for s in pool if s.is_open)

        return replace(
            self,
            lectures=_open(self.lectures),
            discussions=_open(self.discussions),
            quizzes=_open(self.quizzes),
            labs=_open(self.labs),
        )

    def discussions_for(self, lecture: Section) -> Tuple[Section, ...]:
        """Discussions that may pair with `lecture` under this course's pattern."""

        if self.linking_pattern is LinkingPattern.INTERLEAVED:
            return tuple(d for d in self.discussions if d.parent_lecture_id == lecture.section_id)
        return self.discussions


# ----------------------------
# Role assignment
# ----------------------------


def _normalize_label(label: str) -> str:
    return "-".join(part.strip() for part in str(label or "").lower().split("-"))


def classify_role(type_label: str) -> Optional[SectionRole]:
    """Map a free-text type label to a role; None means "not schedulable"."""

    t = str(type_label or "").lower()
    if "lec" in t:
        if _normalize_label(type_label) == "lecture-discussion":
            return SectionRole.LECTURE_DISCUSSION
        return SectionRole.LECTURE
    if "dis" in t:
        return SectionRole.DISCUSSION
    if "qz" in t or "quiz" in t:
        return SectionRole.QUIZ
    if "lab" in t:
        return SectionRole.LAB
    return None


def build_section(raw: RawSection, course_code: str, role: Optional[SectionRole] = None) -> Optional[Section]:
    role = role if role is not None else classify_role(raw.type_label)
    if role is None:
        return None

    unparseable = is_unparseable(raw.time, raw.days)
    if unparseable:
        logger.warning(
            "unparseable_section_time",
            course=course_code,
            section=raw.section_id,
            time=raw.time,
            days=raw.days,
        )

    return Section(
        section_id=str(raw.section_id),
        role=role,
        course_code=course_code,
        meeting_times=build_meeting_times(raw.time, raw.days),
        is_open=bool(raw.is_open),
        type_label=raw.type_label,
        time_text=raw.time,
        days_text=raw.days,
        instructor=raw.instructor,
        location=raw.location,
        units=raw.units,
        has_unparseable_time=unparseable,
    )


# ----------------------------
# Linking inference
# ----------------------------


def infer_linking_pattern(sections: Iterable[Section]) -> Tuple[LinkingPattern, Dict[str, str]]:
    """Infer the linking pattern from sections in their original listing order.

    Returns the pattern and the parent links (section_id -> lecture section_id)
    that should be kept for it.
    """

    ordered = list(sections)
    lectures = [s for s in ordered if s.role.is_lecture]
    discussions = [s for s in ordered if s.role is SectionRole.DISCUSSION]

    if any(s.role is SectionRole.LECTURE_DISCUSSION for s in lectures) and not discussions:
        return LinkingPattern.COMBINED, {}

    if not discussions:
        return LinkingPattern.NO_DISCUSSIONS, {}

    if len(lectures) == 1:
        lecture_id = lectures[0].section_id
        links = {
            s.section_id: lecture_id
            for s in ordered
            if s.role in (SectionRole.DISCUSSION, SectionRole.LAB)
        }
        return LinkingPattern.SINGLE_LECTURE, links

    last_lecture_id: Optional[str] = None
    saw_discussion_after_lecture = False
    saw_lecture_after_discussion = False
    tentative: Dict[str, str] = {}

    for s in ordered:
        if s.role.is_lecture:
            if saw_discussion_after_lecture:
                saw_lecture_after_discussion = True
            last_lecture_id = s.section_id
        elif s.role is SectionRole.DISCUSSION and last_lecture_id is not None:
            saw_discussion_after_lecture = True
            tentative[s.section_id] = last_lecture_id

    if saw_lecture_after_discussion:
        return LinkingPattern.INTERLEAVED, tentative
    return LinkingPattern.GROUPED, {}


def classify_course(listing: CourseListing) -> Course:
    """Turn one raw listing into a typed, linked `Course`."""

    code = listing.course_code
    built: List[Section] = []
    dropped: List[str] = []

    for raw in listing.sections:
        sec = build_section(raw, code)
        if sec is None:
            dropped.append(raw.type_label)
            continue
        built.append(sec)

    if dropped:
        logger.info("sections_dropped", course=code, labels=sorted(set(dropped)), count=len(dropped))

    pattern, links = infer_linking_pattern(built)
    if links:
        built = [replace(s, parent_lecture_id=links[s.section_id]) if s.section_id in links else s for s in built]

    course = Course(
        code=code,
        title=listing.course_title,
        linking_pattern=pattern,
        lectures=tuple(s for s in built if s.role.is_lecture),
        discussions=tuple(s for s in built if s.role is SectionRole.DISCUSSION),
        quizzes=tuple(s for s in built if s.role is SectionRole.QUIZ),
        labs=tuple(s for s in built if s.role is SectionRole.LAB),
        dropped_labels=tuple(dropped),
    )

    logger.debug(
        "course_classified",
        course=code,
        pattern=pattern.value,
        lectures=len(course.lectures),
        discussions=len(course.discussions),
        quizzes=len(course.quizzes),
        labs=len(course.labs),
    )
    return course


def classify_courses(listings: Iterable[CourseListing]) -> List[Course]:
    return [classify_course(listing) for listing in listings]
