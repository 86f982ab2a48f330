"""
CSV export of session history.

Output layout:

    Timestamp,Duration (s),People,Cars,Trucks,Buses,Total Objects
    <locale-date> <locale-time>,<int>,<int>,<int>,<int>,<int>,<int>

Rows follow the order of the records passed in. An empty list yields the
header row only.
"""

from __future__ import annotations

import csv
import io
import logging
import os
from datetime import datetime
from typing import Dict, List, Sequence

from models.session_record import SessionRecord

HEADER = ["Timestamp", "Duration (s)", "People", "Cars", "Trucks", "Buses", "Total Objects"]
DEFAULT_EXPORT_FILENAME = "object_counter_history.csv"


def format_local_timestamp(timestamp: str) -> str:
    """Render an ISO-8601 timestamp as "<locale-date> <locale-time>" in local time."""
    local = datetime.fromisoformat(timestamp).astimezone()
    return f"{local.strftime('%x')} {local.strftime('%X')}"


def to_rows(sessions: Sequence[SessionRecord]) -> List[List[object]]:
    return [
        [
            format_local_timestamp(s.timestamp),
            s.duration,
            s.people,
            s.cars,
            s.trucks,
            s.buses,
            s.total,
        ]
        for s in sessions
    ]


def to_table(sessions: Sequence[SessionRecord]) -> str:
    """Serialize sessions to CSV text with a trailing newline."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(HEADER)
    writer.writerows(to_rows(sessions))
    return buf.getvalue()


def write_csv(sessions: Sequence[SessionRecord], path: str = DEFAULT_EXPORT_FILENAME) -> str:
    """Write to_table() output to path and return the path."""
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(to_table(sessions))
    logging.info(f"Exported {len(sessions)} sessions to {path}")
    return path


def trend_series(sessions: Sequence[SessionRecord]) -> Dict[str, list]:
    """
    Per-class series for chart collaborators, in the order given.

    Pass records in insertion order for trend lines.
    """
    return {
        "labels": [format_local_timestamp(s.timestamp) for s in sessions],
        "people": [s.people for s in sessions],
        "cars": [s.cars for s in sessions],
        "trucks": [s.trucks for s in sessions],
        "buses": [s.buses for s in sessions],
    }
