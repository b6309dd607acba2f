"""
Flat JSON persistence for the alert snapshot and the subscriber roster.

Each store owns exactly one file and replaces it wholesale on save. A
missing file means first run and loads as None. A file that cannot be
parsed also loads as None so the service keeps running, but it is logged
as a warning because the next save overwrites whatever was there.
Within a readable file, individual entries that fail validation are
skipped with a warning and the rest are kept.

Author: Road Closure Alerts contributors
License: MIT
"""

import json
import logging
import os
from datetime import datetime
from typing import Any, Callable, List, Optional, TypeVar

from .errors import MalformedPayload
from .models import Alert, Subscriber, format_timestamp

T = TypeVar('T')


def _read_records(path: str, parse: Callable[[Any], T], label: str) -> Optional[List[T]]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        logging.info(f"No {label} file at {path}, treating as first run")
        return None
    except (OSError, ValueError) as e:
        logging.warning(f"Could not read {label} file {path}, treating as missing (contents will be replaced): {e}")
        return None

    if not isinstance(data, list):
        logging.warning(f"{label} file {path} does not hold a list, treating as missing")
        return None
    records = []
    for index, entry in enumerate(data):
        try:
            records.append(parse(entry))
        except MalformedPayload as e:
            logging.warning(f"Skipping invalid entry {index} in {label} file {path}: {e}")
    return records


def _write_json(path: str, data: Any):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f)


class SnapshotStore:
    """The last known set of open closures, plus timestamped archive copies."""

    def __init__(self, path: str, archive_dir: str):
        self.path = path
        self.archive_dir = archive_dir

    def load(self) -> Optional[List[Alert]]:
        return _read_records(self.path, Alert.from_dict, "snapshot")

    def save(self, alerts: List[Alert]):
        _write_json(self.path, [alert.to_dict() for alert in alerts])
        logging.info(f"Saved snapshot of {len(alerts)} closures to {self.path}")

    def archive_path(self, timestamp: datetime) -> str:
        return os.path.join(self.archive_dir, f"{format_timestamp(timestamp)}-road-closures.json")

    def archive(self, alerts: List[Alert], timestamp: datetime) -> str:
        """Write an append-only copy of ``alerts`` named after ``timestamp``.

        Returns:
            str: The path of the archive file
        """
        path = self.archive_path(timestamp)
        _write_json(path, [alert.to_dict() for alert in alerts])
        logging.info(f"Archived snapshot to {path}")
        return path


class RosterStore:
    """The current list of SMS subscribers."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[List[Subscriber]]:
        return _read_records(self.path, Subscriber.from_dict, "roster")

    def save(self, roster: List[Subscriber]):
        _write_json(self.path, [subscriber.to_dict() for subscriber in roster])
        logging.info(f"Saved roster of {len(roster)} subscribers to {self.path}")
