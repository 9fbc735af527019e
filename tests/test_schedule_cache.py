import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import json

from modules.schedule_generator import GenerationSettings, generate_schedules, load_course_listings_from_json
from ui.utils.schedule_cache import schedules_from_records, schedules_to_records


def test_schedules_survive_json_storage():
    listings = load_course_listings_from_json(str(ROOT / "data" / "sample_courses.json"))
    schedules, _ = generate_schedules(listings, GenerationSettings(max_schedules=5, seed=3))

    records = json.loads(json.dumps(schedules_to_records(schedules)))
    restored = schedules_from_records(records)

    assert [s.key for s in restored] == [s.key for s in schedules]
    assert restored[0].sections == schedules[0].sections


def test_broken_records_are_skipped():
    good = {"sections": [{"section_id": "1", "role": "Lecture", "course_code": "A-100", "meeting_times": [["M", 600, 650]]}]}
    bad_role = {"sections": [{"section_id": "2", "role": "Seminar"}]}
    missing_id = {"sections": [{"role": "Lecture"}]}

    restored = schedules_from_records([good, bad_role, missing_id, {"sections": []}])

    assert len(restored) == 1
    assert restored[0].sections[0].meeting_times[0].start == 600
    assert schedules_from_records(None) == []
