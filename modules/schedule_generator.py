"""Weekly schedule generation module.

Given a list of courses, each offering pools of interchangeable sections
(lecture, discussion, quiz, lab), generate a bounded, duplicate-free and
diverse sample of complete weekly schedules with no overlapping meetings.

Pipeline
--------
raw listings -> `section_classifier` -> `ScheduleEnumerator` (conflict
predicate from `time_model`) -> `sampling.round_robin_select` -> schedules

Rules for a complete schedule
-----------------------------
- exactly one lecture (or lecture-discussion) per course
- one discussion / quiz / lab per course whenever that pool is non-empty
  (under INTERLEAVED linking the discussion pool is narrowed to the chosen
  lecture's own discussions)
- no two sections conflict

The search is exhaustive up to `absolute_max` distinct schedules; reaching
the cap is a normal truncation, not an error. Candidate order is shuffled by
an injectable RNG so that repeated runs surface different variants while a
fixed seed reproduces the same output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import json
import random

import structlog

from sampling import SelectionResult, round_robin_select

from .section_classifier import (
    Course,
    CourseListing,
    RawSection,
    Section,
    classify_courses,
)
from .time_model import ConflictFn, conflicts_with_any, sections_conflict


logger = structlog.get_logger()


DEFAULT_ABSOLUTE_MAX = 500
DEFAULT_MAX_SCHEDULES = 20


# ----------------------------
# Data models
# ----------------------------


@dataclass(frozen=True)
class Schedule:
    sections: Tuple[Section, ...]

    @property
    def key(self) -> Tuple[str, ...]:
        """Canonical identity: the sorted section ids, independent of assembly order."""

        return tuple(sorted(s.key for s in self.sections))

    @property
    def lecture_combination(self) -> Tuple[str, ...]:
        return tuple(sorted(s.key for s in self.sections if s.role.is_lecture))

    @property
    def course_codes(self) -> Tuple[str, ...]:
        seen: List[str] = []
        for s in self.sections:
            if s.course_code not in seen:
                seen.append(s.course_code)
        return tuple(seen)

    def sections_for(self, course_code: str) -> Tuple[Section, ...]:
        return tuple(s for s in self.sections if s.course_code == course_code)

    def __iter__(self):
        return iter(self.sections)

    def __len__(self) -> int:
        return len(self.sections)


@dataclass(frozen=True)
class GenerationSettings:
    # Requested sample size (UI slider range 5-50)
    max_schedules: int = DEFAULT_MAX_SCHEDULES

    # Safety cap on distinct complete schedules explored before sampling
    absolute_max: int = DEFAULT_ABSOLUTE_MAX

    # Drop closed sections before generating
    only_open: bool = False

    # RNG seed; None => different variety on every run
    seed: Optional[int] = None

    # Shuffle candidate order and bucket order
    shuffle: bool = True

    def __post_init__(self) -> None:
        if int(self.max_schedules) < 1:
            raise ValueError("max_schedules must be >= 1")
        if int(self.absolute_max) < 1:
            raise ValueError("absolute_max must be >= 1")


@dataclass
class EnumerationResult:
    schedules: List[Schedule] = field(default_factory=list)
    truncated: bool = False


# ----------------------------
# Enumerator
# ----------------------------


class ScheduleEnumerator:
    """Depth-first backtracking over courses, bounded by `absolute_max`.

    The partial assignment is threaded through the recursion as an immutable
    tuple, so sibling branches can never see each other's selections.
    """

    def __init__(
        self,
        conflict: ConflictFn = sections_conflict,
        absolute_max: int = DEFAULT_ABSOLUTE_MAX,
        rng: Optional[random.Random] = None,
        shuffle: bool = True,
    ):
        if int(absolute_max) < 1:
            raise ValueError("absolute_max must be >= 1")
        self._conflict = conflict
        self._absolute_max = int(absolute_max)
        self._rng = rng or random.Random()
        self._shuffle = shuffle

        self._courses: Sequence[Course] = ()
        self._found: List[Schedule] = []
        self._seen: set = set()

    def enumerate(self, courses: Sequence[Course]) -> EnumerationResult:
        self._courses = list(courses)
        self._found = []
        self._seen = set()

        missing = [c.code for c in self._courses if not c.lectures]
        if missing:
            # no lecture => that course can never be completed
            logger.warning("course_without_lectures", courses=missing)
        elif self._courses:
            self._walk_course(0, ())

        result = EnumerationResult(schedules=self._found, truncated=self._full())
        logger.info(
            "schedules_enumerated",
            courses=len(self._courses),
            count=len(result.schedules),
            truncated=result.truncated,
            absolute_max=self._absolute_max,
        )
        return result

    def _full(self) -> bool:
        return len(self._found) >= self._absolute_max

    def _ordered(self, pool: Sequence[Section]) -> List[Section]:
        out = list(pool)
        if self._shuffle:
            self._rng.shuffle(out)
        return out

    def _emit(self, chosen: Tuple[Section, ...]) -> None:
        schedule = Schedule(sections=chosen)
        key = schedule.key
        if key in self._seen:
            return
        self._seen.add(key)
        self._found.append(schedule)

    def _walk_course(self, index: int, chosen: Tuple[Section, ...]) -> None:
        if self._full():
            return

        if index == len(self._courses):
            self._emit(chosen)
            return

        course = self._courses[index]
        for lecture in self._ordered(course.lectures):
            if self._full():
                return
            if conflicts_with_any(lecture, chosen, self._conflict):
                continue

            pools = (
                self._ordered(course.discussions_for(lecture)),
                self._ordered(course.quizzes),
                self._ordered(course.labs),
            )
            self._walk_components(index, pools, 0, chosen + (lecture,))

    def _walk_components(
        self,
        index: int,
        pools: Tuple[List[Section], ...],
        depth: int,
        chosen: Tuple[Section, ...],
    ) -> None:
        if depth == len(pools):
            self._walk_course(index + 1, chosen)
            return

        pool = pools[depth]
        if not pool:
            # role absent for this course (or for this lecture): nothing to pick
            self._walk_components(index, pools, depth + 1, chosen)
            return

        for candidate in pool:
            if self._full():
                return
            if conflicts_with_any(candidate, chosen, self._conflict):
                continue
            self._walk_components(index, pools, depth + 1, chosen + (candidate,))


# ----------------------------
# Pipeline
# ----------------------------


def _prepare_courses(
    listings: Iterable[CourseListing],
    *,
    only_open: bool,
) -> Tuple[List[Course], List[str]]:
    """Classify usable listings; closed sections are dropped after linking."""

    usable: List[CourseListing] = []
    skipped: List[str] = []

    for listing in listings:
        if listing.error:
            logger.warning("course_listing_failed", course=listing.course_code, error=listing.error)
            skipped.append(listing.course_code)
            continue
        if not listing.sections:
            logger.warning("course_has_no_usable_sections", course=listing.course_code, only_open=only_open)
            skipped.append(listing.course_code)
            continue
        usable.append(listing)

    # linking must see the full listing order
    courses = classify_courses(usable)
    if not only_open:
        return courses, skipped

    kept: List[Course] = []
    for course in courses:
        narrowed = course.open_only()
        if not narrowed.sections:
            logger.warning("course_has_no_usable_sections", course=course.code, only_open=only_open)
            skipped.append(course.code)
            continue
        kept.append(narrowed)
    return kept, skipped


def select_diverse_schedules(
    schedules: Sequence[Schedule],
    max_schedules: int,
    *,
    rng: Optional[random.Random] = None,
    shuffle: bool = True,
) -> SelectionResult[Schedule]:
    """Round-robin over lecture-combination buckets."""

    return round_robin_select(
        schedules,
        key=lambda s: s.lecture_combination,
        limit=int(max_schedules),
        rng=rng,
        shuffle=shuffle,
    )


def generate_schedules(
    listings: Sequence[CourseListing],
    settings: GenerationSettings = GenerationSettings(),
    *,
    conflict: ConflictFn = sections_conflict,
) -> Tuple[List[Schedule], Dict[str, Any]]:
    """Classify, enumerate and sample schedules for the given course listings.

    Returns:
        (schedules, metrics). An empty schedule list means no feasible
        combination exists; it is never signalled with an exception.
    """

    rng = random.Random(settings.seed)

    courses, skipped = _prepare_courses(listings, only_open=settings.only_open)

    enumerator = ScheduleEnumerator(
        conflict=conflict,
        absolute_max=settings.absolute_max,
        rng=rng,
        shuffle=settings.shuffle,
    )
    enumerated = enumerator.enumerate(courses) if courses else EnumerationResult()

    selection = select_diverse_schedules(
        enumerated.schedules,
        settings.max_schedules,
        rng=rng,
        shuffle=settings.shuffle,
    )

    metrics: Dict[str, Any] = {
        "courses": len(courses),
        "skipped_courses": skipped,
        "enumerated": len(enumerated.schedules),
        "truncated": enumerated.truncated,
        "lecture_combinations": selection.total_buckets,
        "returned": len(selection.selected),
        "unparseable_time_sections": sum(c.unparseable_time_count for c in courses),
    }

    logger.info("schedules_generated", requested=settings.max_schedules, **metrics)
    return selection.selected, metrics


# ----------------------------
# Input / output helpers
# ----------------------------


def course_listing_from_dict(raw: Dict[str, Any]) -> CourseListing:
    sections = tuple(
        RawSection(
            section_id=str(s["section_id"]),
            type_label=str(s.get("type", "")),
            time=str(s.get("time", "") or ""),
            days=str(s.get("days", "") or ""),
            instructor=str(s.get("instructor", "") or ""),
            location=str(s.get("location", "") or ""),
            units=str(s.get("units", "") or ""),
            registered=int(s.get("registered", 0) or 0),
            seats=int(s.get("seats", 0) or 0),
            is_open=bool(s.get("is_open", True)),
        )
        for s in raw.get("sections", [])
    )
    return CourseListing(
        course_code=str(raw["course_code"]),
        course_title=str(raw.get("course_title", "") or ""),
        sections=sections,
        error=raw.get("error"),
    )


def load_course_listings_from_json(path: str) -> List[CourseListing]:
    """Load course listings from a JSON file (``{"courses": [...]}`` or a bare list)."""

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    items = raw["courses"] if isinstance(raw, dict) else raw
    return [course_listing_from_dict(c) for c in items]


def format_schedule_as_rows(schedule: Schedule) -> List[Dict[str, str]]:
    """Return a list of rows suitable for tables/CSV."""

    rows: List[Dict[str, str]] = []
    for s in schedule.sections:
        rows.append(
            {
                "course_code": s.course_code,
                "section_id": s.section_id,
                "type": s.role.value,
                "time": s.time_text or "TBA",
                "days": s.days_text or "TBA",
                "instructor": s.instructor,
                "location": s.location,
                "open": "yes" if s.is_open else "no",
            }
        )
    return rows
