"""Course listing fetcher for the registration site's department pages.

Each department page lists courses as ``.course-header`` links whose ``href``
points at a content area holding ``.section`` blocks. A department can span
several pages, so a course is looked up page by page until it is found.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

import requests
import structlog
from bs4 import BeautifulSoup, Tag

from modules.section_classifier import CourseListing, RawSection


logger = structlog.get_logger()


DEFAULT_BASE_URL = "https://webreg.usc.edu"

_COURSE_CODE_RE = re.compile(r"^([A-Z]{2,5})-(\d{2,4}[A-Z]?)$")
_REGISTERED_RE = re.compile(r"(\d+)\s*of\s*(\d+)", re.IGNORECASE)


class CourseFetchError(RuntimeError):
    """A department page could not be downloaded."""


class CourseNotFoundError(LookupError):
    """The course is not listed on any of the searched pages."""


@dataclass(frozen=True)
class FetcherConfig:
    base_url: str = DEFAULT_BASE_URL
    max_pages: int = 10
    timeout: float = 15.0


def default_fetcher_config() -> FetcherConfig:
    """Use `SCHEDULE_BUILDER_BASE_URL` env var if set, else the public site."""

    return FetcherConfig(base_url=os.getenv("SCHEDULE_BUILDER_BASE_URL") or DEFAULT_BASE_URL)


def split_course_code(course_code: str) -> tuple[str, str]:
    """'CSCI-350' -> ('CSCI', '350')."""

    m = _COURSE_CODE_RE.match(str(course_code or "").strip().upper())
    if not m:
        raise ValueError(
            f"Invalid course code format: {course_code}. Expected DEPT-NUMBER (e.g., CSCI-350)"
        )
    return m.group(1), m.group(2)


def department_page_path(department: str, page_number: int) -> str:
    if page_number <= 1:
        return f"/Courses?Program={department}"
    return f"/Courses?pageNumber={page_number}&Program={department}"


# ----------------------------
# HTML parsing
# ----------------------------


def _text(tag: Optional[Tag]) -> str:
    return tag.get_text(" ", strip=True) if tag is not None else ""


def _parse_registered(value: str) -> tuple[int, int, bool]:
    """'45 of 50' -> (45, 50, True). Closed or unknown formats count as closed."""

    if "closed" in value.lower():
        return 0, 0, False
    m = _REGISTERED_RE.search(value)
    if not m:
        return 0, 0, False
    registered, seats = int(m.group(1)), int(m.group(2))
    return registered, seats, registered < seats


def extract_section(section_tag: Tag) -> Optional[RawSection]:
    section_id = str(section_tag.get("id") or "").replace("section_", "").strip()
    if not section_id:
        return None

    fields = {}
    registered, seats, is_open = 0, 0, False

    for row in section_tag.select(".section_row"):
        label_tag = row.select_one(".table-headers-xsmall")
        label = _text(label_tag).replace(":", "").strip()

        values = [
            _text(span)
            for span in row.find_all("span")
            if "table-headers-xsmall" not in (span.get("class") or [])
        ]
        value = " ".join(v for v in values if v)
        if not value:
            full = row.get_text(" ", strip=True)
            value = full.split(":", 1)[1].strip() if ":" in full else ""

        if label == "Registered":
            registered, seats, is_open = _parse_registered(value)
        elif label:
            fields[label] = value

    return RawSection(
        section_id=section_id,
        type_label=fields.get("Type", ""),
        time=fields.get("Time", ""),
        days=fields.get("Days", ""),
        instructor=fields.get("Instructor", ""),
        location=fields.get("Location", ""),
        units=fields.get("Units", ""),
        registered=registered,
        seats=seats,
        is_open=is_open,
    )


def parse_course_from_html(html: str, course_code: str) -> CourseListing:
    """Find `course_code` on a department page and extract its sections.

    Raises:
        CourseNotFoundError: the page does not list the course.
    """

    soup = BeautifulSoup(html, "html.parser")
    code = str(course_code).strip().upper()

    target: Optional[Tag] = None
    available = []
    for header in soup.select(".course-header"):
        crs_id = _text(header.select_one(".crsID")).replace(":", "").strip()
        available.append(crs_id)
        # suffixed ids such as CSCI-350g still match
        if crs_id and crs_id.upper().startswith(code):
            target = header
            break

    if target is None:
        logger.debug("course_not_on_page", course=code, available=available)
        raise CourseNotFoundError(f"Course {code} not found in department listing")

    title = _text(target.select_one(".crsTitl"))

    content: Optional[Tag] = None
    href = str(target.get("href") or "")
    if href.startswith("#") and len(href) > 1:
        content = soup.find(id=href[1:])

    sections: List[RawSection] = []
    if content is not None:
        for tag in content.select(".section"):
            raw = extract_section(tag)
            if raw is not None:
                sections.append(raw)

    open_count = sum(1 for s in sections if s.is_open)
    logger.info(
        "course_parsed",
        course=code,
        sections=len(sections),
        open=open_count,
        closed=len(sections) - open_count,
    )
    return CourseListing(course_code=code, course_title=title, sections=tuple(sections))


# ----------------------------
# Fetcher
# ----------------------------


class CourseFetcher:
    """Download department pages and extract course listings."""

    def __init__(self, config: FetcherConfig = FetcherConfig(), session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._session = session or requests.Session()

    def fetch_page(self, path: str) -> str:
        url = self._config.base_url.rstrip("/") + path
        try:
            response = self._session.get(url, timeout=self._config.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise CourseFetchError(f"Could not load department page: {e}") from e
        return response.text

    def fetch_course(self, course_code: str) -> CourseListing:
        department, _number = split_course_code(course_code)
        code = str(course_code).strip().upper()

        for page in range(1, int(self._config.max_pages) + 1):
            html = self.fetch_page(department_page_path(department, page))
            try:
                listing = parse_course_from_html(html, code)
            except CourseNotFoundError:
                continue
            logger.info("course_found", course=code, page=page)
            return listing

        raise CourseNotFoundError(f"Course {code} not found after checking {self._config.max_pages} pages")

    def fetch_courses(self, course_codes: Iterable[str]) -> List[CourseListing]:
        """Fetch every course; failures are reported on the listing instead of raised."""

        results: List[CourseListing] = []
        for code in course_codes:
            try:
                results.append(self.fetch_course(code))
            except (ValueError, LookupError, CourseFetchError) as e:
                logger.warning("course_fetch_failed", course=code, error=str(e))
                results.append(CourseListing(course_code=str(code).strip().upper(), error=str(e)))
        return results
