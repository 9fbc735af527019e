"""Demo runner: generate weekly schedules from sample JSON listings.

Works offline; no registration site access needed.

Usage:
    python scripts/run_schedule_demo.py [--max 10] [--seed 7] [--only-open]

"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

import pandas as pd
import structlog

# Ensure project root is on PYTHONPATH when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.schedule_generator import (
    GenerationSettings,
    format_schedule_as_rows,
    generate_schedules,
    load_course_listings_from_json,
)
from utils.timetable_export import availability_stats_df, schedule_grid_df


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--data", default=str(ROOT / "data" / "sample_courses.json"))
    parser.add_argument("--max", type=int, default=10, dest="max_schedules")
    parser.add_argument("--seed", type=int, default=7)
    parser.add_argument("--only-open", action="store_true")
    args = parser.parse_args()

    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING))

    listings = load_course_listings_from_json(args.data)

    settings = GenerationSettings(max_schedules=args.max_schedules, seed=args.seed, only_open=args.only_open)
    schedules, metrics = generate_schedules(listings, settings)

    print("\n=== Seat availability ===")
    print(availability_stats_df(listings).to_string(index=False))

    for i, sched in enumerate(schedules[:3], start=1):
        print(f"\n=== Schedule {i} of {len(schedules)} ===")
        print(pd.DataFrame(format_schedule_as_rows(sched)).to_string(index=False))
        print()
        print(schedule_grid_df(sched).to_string(index=False))

    print("\n=== Metrics ===")
    for k, v in metrics.items():
        print(f"{k}: {v}")


if __name__ == "__main__":
    main()
