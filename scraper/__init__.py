"""Scraper module for extracting course listings from department pages."""

from .course_fetcher import (
    CourseFetchError,
    CourseFetcher,
    CourseNotFoundError,
    FetcherConfig,
    default_fetcher_config,
    parse_course_from_html,
)

__all__ = [
    "CourseFetchError",
    "CourseFetcher",
    "CourseNotFoundError",
    "FetcherConfig",
    "default_fetcher_config",
    "parse_course_from_html",
]
