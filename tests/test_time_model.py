import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from types import SimpleNamespace

from modules.time_model import (
    MeetingTime,
    build_meeting_times,
    conflicts_with_any,
    format_minutes,
    is_unparseable,
    meetings_conflict,
    parse_days,
    parse_time,
    parse_time_range,
    sections_conflict,
)


def _sec(time_text: str, days_text: str):
    return SimpleNamespace(meeting_times=build_meeting_times(time_text, days_text))


def test_parse_time_handles_noon_and_midnight():
    assert parse_time("10:00am") == 600
    assert parse_time("1:30pm") == 810
    assert parse_time("12:00pm") == 720
    assert parse_time("12:15am") == 15
    assert parse_time(" 9:05 PM ") == 21 * 60 + 5


def test_parse_time_rejects_malformed_tokens():
    assert parse_time("10am") is None
    assert parse_time("13:00pm") is None
    assert parse_time("10:75am") is None
    assert parse_time("") is None


def test_parse_time_range():
    assert parse_time_range("10:00am-11:50am") == (600, 710)
    assert parse_time_range("TBA") is None
    assert parse_time_range("") is None
    assert parse_time_range("10:00am") is None
    # inverted interval carries no constraint
    assert parse_time_range("2:00pm-1:00pm") is None


def test_parse_days_prefers_thursday_token():
    assert parse_days("MWF") == ("M", "W", "F")
    assert parse_days("TTh") == ("T", "Th")
    assert parse_days("Th") == ("Th",)
    assert parse_days("M, W") == ("M", "W")
    assert parse_days("TBA") == ()


def test_parse_days_ignores_case():
    assert parse_days("mw") == ("M", "W")
    assert parse_days("tth") == ("T", "Th")
    assert parse_days("TTH") == ("T", "Th")
    assert build_meeting_times("9:00am-9:50am", "mwf") == build_meeting_times("9:00am-9:50am", "MWF")


def test_build_meeting_times_one_per_day():
    times = build_meeting_times("10:00am-11:50am", "TTh")
    assert times == (
        MeetingTime(day="T", start=600, end=710),
        MeetingTime(day="Th", start=600, end=710),
    )
    assert build_meeting_times("TBA", "MW") == ()
    assert build_meeting_times("10:00am-11:50am", "TBA") == ()


def test_is_unparseable_ignores_tba():
    assert is_unparseable("TBA", "MW") is False
    assert is_unparseable("10:00am-11:50am", "") is False
    assert is_unparseable("10-11", "MW") is True
    assert is_unparseable("10:00am-11:50am", "XYZ") is True
    assert is_unparseable("10:00am-11:50am", "MW") is False


def test_meetings_conflict_is_half_open():
    a = MeetingTime(day="M", start=600, end=660)
    assert meetings_conflict(a, MeetingTime(day="M", start=630, end=700))
    # back-to-back
    assert not meetings_conflict(a, MeetingTime(day="M", start=660, end=720))
    # different day
    assert not meetings_conflict(a, MeetingTime(day="W", start=600, end=660))


def test_sections_conflict_requires_shared_day_and_overlap():
    mw = _sec("10:00am-11:50am", "MW")
    assert sections_conflict(mw, _sec("11:00am-12:00pm", "W"))
    assert not sections_conflict(mw, _sec("11:00am-12:00pm", "TTh"))
    assert not sections_conflict(mw, _sec("11:50am-12:50pm", "M"))


def test_tba_sections_never_conflict():
    mw = _sec("10:00am-11:50am", "MW")
    assert not sections_conflict(mw, _sec("TBA", "TBA"))
    assert not sections_conflict(_sec("TBA", "TBA"), mw)
    # malformed time behaves like TBA
    assert not sections_conflict(mw, _sec("garbage", "MW"))


def test_conflicts_with_any_uses_injected_predicate():
    a = _sec("10:00am-11:50am", "M")
    b = _sec("1:00pm-1:50pm", "M")
    assert not conflicts_with_any(a, [b])
    assert conflicts_with_any(a, [b], conflict=lambda x, y: True)
    assert not conflicts_with_any(a, [])


def test_format_minutes():
    assert format_minutes(480) == "8:00 AM"
    assert format_minutes(720) == "12:00 PM"
    assert format_minutes(0) == "12:00 AM"
    assert format_minutes(20 * 60 + 5) == "8:05 PM"
