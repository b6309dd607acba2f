"""SQLite-backed log of subscription events.

Phone numbers are never stored; events are keyed by an md5 hash of the
number so repeat contacts can still be correlated.

Author: Road Closure Alerts contributors
License: MIT
"""

import hashlib
import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def hash_number(number: str) -> str:
    return hashlib.md5(number.encode()).hexdigest()


class AnalyticsStore:
    """Records signup, renewal and unsubscribe events.

    Recording is fire-and-forget: database errors are logged and never
    raised to the caller.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._lock = threading.Lock()
        self.db_conn = sqlite3.connect(db_path, check_same_thread=False)
        self.setup_database()

    def setup_database(self):
        """Creates the events table if it doesn't exist."""
        cursor = self.db_conn.cursor()
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS subscription_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                subscription_hash TEXT NOT NULL,    -- md5 of the phone number
                action TEXT NOT NULL,               -- SIGNUP, UNSUBSCRIBE, DUPLICATE_SIGNUP
                time INTEGER NOT NULL,              -- Epoch milliseconds
                payload TEXT                        -- JSON payload, or NULL
            )
        ''')
        self.db_conn.commit()

    def record(self, number_hash: str, action: str, payload: Optional[Dict[str, Any]] = None,
               now: Optional[datetime] = None):
        """Stores one event.

        Args:
            number_hash (str): Hash of the sender's number (see hash_number)
            action (str): Event name
            payload (dict, optional): Extra JSON-serialisable detail
            now (datetime, optional): Event time, defaults to the current time
        """
        now = now or datetime.now(timezone.utc)
        millis = int(now.timestamp() * 1000)
        try:
            with self._lock:
                cursor = self.db_conn.cursor()
                cursor.execute(
                    'INSERT INTO subscription_events (subscription_hash, action, time, payload) VALUES (?, ?, ?, ?)',
                    (number_hash, str(action), millis, json.dumps(payload) if payload is not None else None),
                )
                self.db_conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            logging.error(f"Error recording analytics event {action}: {e}")

    def events(self, number_hash: Optional[str] = None) -> List[Dict[str, Any]]:
        """Reads back recorded events, oldest first.

        Not used by the service itself; it exists for inspecting and
        reporting on the log (and for tests).

        Args:
            number_hash (str, optional): Restrict to one subscriber's events

        Returns:
            List[Dict]: Events with their JSON payloads decoded
        """
        with self._lock:
            cursor = self.db_conn.cursor()
            if number_hash:
                cursor.execute(
                    'SELECT subscription_hash, action, time, payload FROM subscription_events '
                    'WHERE subscription_hash = ? ORDER BY id', (number_hash,))
            else:
                cursor.execute('SELECT subscription_hash, action, time, payload FROM subscription_events ORDER BY id')
            rows = cursor.fetchall()
        return [
            {
                'subscription_hash': subscription_hash,
                'action': action,
                'time': time,
                'payload': json.loads(payload) if payload else None,
            }
            for subscription_hash, action, time, payload in rows
        ]

    def close(self):
        self.db_conn.close()
