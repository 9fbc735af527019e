"""Schedule building modules (time model, section classification, generation)."""

from .time_model import (
	MeetingTime,
	build_meeting_times,
	meetings_conflict,
	parse_days,
	parse_time,
	parse_time_range,
	sections_conflict,
)

from .section_classifier import (
	Course,
	CourseListing,
	LinkingPattern,
	RawSection,
	Section,
	SectionRole,
	classify_course,
	classify_courses,
	classify_role,
	infer_linking_pattern,
)

from .schedule_generator import (
	GenerationSettings,
	Schedule,
	ScheduleEnumerator,
	generate_schedules,
	load_course_listings_from_json,
	select_diverse_schedules,
)

__all__ = [
	"MeetingTime",
	"build_meeting_times",
	"meetings_conflict",
	"parse_days",
	"parse_time",
	"parse_time_range",
	"sections_conflict",
	"Course",
	"CourseListing",
	"LinkingPattern",
	"RawSection",
	"Section",
	"SectionRole",
	"classify_course",
	"classify_courses",
	"classify_role",
	"infer_linking_pattern",
	"GenerationSettings",
	"Schedule",
	"ScheduleEnumerator",
	"generate_schedules",
	"load_course_listings_from_json",
	"select_diverse_schedules",
]
