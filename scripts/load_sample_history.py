"""
load_sample_history.py: fill site tables with synthetic readings for local development

Creates one table per site (timestamp + every power/environment column) and
writes a reading every --step minutes for the last --days days.

Usage:
  DATABASE_URL=sqlite:///data/sitewatch.db python scripts/load_sample_history.py
  python scripts/load_sample_history.py --sites f21 f24 --days 60 --step 10
  python scripts/load_sample_history.py --dry-run
"""

import sys
import logging
import argparse
import random
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
from dotenv import load_dotenv
load_dotenv()

import pandas as pd

from src.sitewatch.db import get_engine
from src.sitewatch.history.columns import PARAMETERS, columns_for, table_name_for
from src.sitewatch.simulator.values import simulated_value

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

# column name fragment -> topic-style hint understood by simulated_value()
COLUMN_HINTS = [
    ("Total_Active_Power", "Total Active Power"),
    ("Active_Power", "Active Power"),
    ("Current", "Current"),
    ("Voltage", "Phase V"),
    ("Ts", "/T"),
    ("H", "/H"),
]


def hint_for(column: str) -> str:
    for fragment, hint in COLUMN_HINTS:
        if column.startswith(fragment) or fragment in column:
            return hint
    return column


def build_frame(table: str, days: int, step_minutes: int, rng: random.Random) -> pd.DataFrame:
    columns = []
    for parameter in PARAMETERS:
        for column in columns_for(parameter, table):
            if column not in columns:
                columns.append(column)

    end = datetime.now().replace(second=0, microsecond=0)
    start = end - timedelta(days=days)
    stamps = pd.date_range(start, end, freq=f"{step_minutes}min")

    data = {"timestamp": stamps.strftime("%Y-%m-%d %H:%M:%S")}
    for column in columns:
        hint = hint_for(column)
        data[column] = [float(simulated_value(hint, rng)) for _ in range(len(stamps))]
    return pd.DataFrame(data)


def main():
    parser = argparse.ArgumentParser(description="Load synthetic history into the site tables")
    parser.add_argument("--sites", nargs="+", default=["f21", "f24", "f08"], help="Site ids or aliases")
    parser.add_argument("--days", type=int, default=45)
    parser.add_argument("--step", type=int, default=15, help="Minutes between readings")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--dry-run", action="store_true", help="Build the frames without writing")
    args = parser.parse_args()

    rng = random.Random(args.seed)
    engine = None if args.dry_run else get_engine()

    for site in args.sites:
        table = table_name_for(site)
        frame = build_frame(table, args.days, args.step, rng)
        if args.dry_run:
            logger.info(f"[dry-run] {table}: {len(frame):,} rows x {len(frame.columns) - 1} columns")
            continue
        frame.to_sql(table, engine, if_exists="replace", index=False, chunksize=5000)
        logger.info(f"✅ {table}: wrote {len(frame):,} rows")


if __name__ == "__main__":
    main()
