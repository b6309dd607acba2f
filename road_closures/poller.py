"""
Closure poller.

Runs one fetch, filter, reconcile, notify and persist round per tick:

1. Fetch the statewide closure feed
2. Keep only alerts inside the regional bounding box
3. Compare their ids with the snapshot saved by the previous tick
4. If any closure appeared or cleared, text every active subscriber
   (and optionally tweet the batch), then prune expired subscribers
5. Save the new snapshot, archiving a timestamped copy when it changed

Author: Road Closure Alerts contributors
License: MIT
"""

import argparse
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .config import Config, setup_logging
from .errors import CycleInProgressError, FetchError
from .feed import FeedFetcher
from .geo import GeoFilter
from .models import Alert
from .notifications import build_messages, should_notify
from .reconcile import reconcile
from .sms import TwilioTransport
from .storage import RosterStore, SnapshotStore
from .subscriptions import active_subscribers
from .twitter import TwitterBroadcaster


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CycleResult:
    """What one poll cycle did."""
    status: str  # "initialized", "unchanged", "notified" or "aborted"
    timestamp: datetime
    added: List[Alert] = field(default_factory=list)
    removed: List[Alert] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)
    recipients: List[str] = field(default_factory=list)
    error: Optional[str] = None


class PollCycle:
    """Orchestrates one polling round against the snapshot and roster stores."""

    def __init__(self, fetcher: FeedFetcher, geo_filter: GeoFilter,
                 snapshot_store: SnapshotStore, roster_store: RosterStore,
                 transport: TwilioTransport, broadcaster: Optional[TwitterBroadcaster] = None,
                 source_name: str = "CODOT", full_closure_code: str = "4",
                 clock: Callable[[], datetime] = utc_now):
        self.fetcher = fetcher
        self.geo_filter = geo_filter
        self.snapshot_store = snapshot_store
        self.roster_store = roster_store
        self.transport = transport
        self.broadcaster = broadcaster
        self.source_name = source_name
        self.full_closure_code = full_closure_code
        self.clock = clock
        self._running = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> 'PollCycle':
        return cls(
            fetcher=FeedFetcher(config),
            geo_filter=GeoFilter.from_config(config),
            snapshot_store=SnapshotStore(config.SNAPSHOT_PATH, config.ARCHIVE_DIR),
            roster_store=RosterStore(config.ROSTER_PATH),
            transport=TwilioTransport.from_config(config),
            broadcaster=TwitterBroadcaster.from_config(config),
            source_name=config.FEED_SOURCE_NAME,
            full_closure_code=config.FULL_CLOSURE_CODE,
        )

    def run(self) -> CycleResult:
        """Runs one cycle to completion.

        Raises:
            CycleInProgressError: If called while a previous cycle is running
        """
        if not self._running.acquire(blocking=False):
            raise CycleInProgressError("A poll cycle is already running")
        try:
            return self._run_once()
        finally:
            self._running.release()

    def _run_once(self) -> CycleResult:
        now = self.clock()
        logging.info("Starting closure check...")

        try:
            fetched = self.fetcher.fetch_current_alerts()
        except FetchError as e:
            logging.error(f"Encountered error fetching new data: {e}")
            return CycleResult(status="aborted", timestamp=now, error=str(e))

        current = self.geo_filter.apply(fetched)
        previous = self.snapshot_store.load()
        result = reconcile(previous, current)

        if result.initial:
            logging.info(f"Generating new snapshot with {len(current)} closures")
            self.snapshot_store.save(current)
            return CycleResult(status="initialized", timestamp=now)

        if not should_notify(result.added, result.removed):
            logging.info("No new closures or openings")
            self.snapshot_store.save(current)
            return CycleResult(status="unchanged", timestamp=now)

        messages = build_messages(result.added, result.removed,
                                  source=self.source_name, full_code=self.full_closure_code)
        for message in messages:
            logging.info(message)

        roster = self.roster_store.load() or []
        active = active_subscribers(roster, now)
        if len(active) != len(roster):
            logging.info(f"Pruning {len(roster) - len(active)} expired subscribers")
        self.roster_store.save(active)

        recipients = [subscriber.number for subscriber in active]
        self._dispatch(messages, recipients)

        self.snapshot_store.save(current)
        self.snapshot_store.archive(current, now)
        return CycleResult(
            status="notified",
            timestamp=now,
            added=result.added,
            removed=result.removed,
            messages=messages,
            recipients=recipients,
        )

    def _dispatch(self, messages: List[str], recipients: List[str]):
        # Delivery is best effort; a failure here must not undo persistence
        try:
            self.transport.send_batch(messages, recipients)
        except Exception as e:
            logging.error(f"Caught an error trying to send messages: {e}")
        if self.broadcaster is not None:
            try:
                self.broadcaster.post_batch(messages)
            except Exception as e:
                logging.error(f"Caught an error trying to broadcast messages: {e}")


def run_forever(cycle: PollCycle, interval: float, sleep: Callable[[float], None] = time.sleep,
                max_cycles: Optional[int] = None):
    """Main loop: run a cycle, then wait ``interval`` seconds, and repeat.

    A cycle always finishes before the next one starts. Unexpected errors
    in one cycle are logged and the loop carries on with the next tick.
    """
    logging.info(f"Poller started with an interval of {interval} seconds")
    cycles = 0
    try:
        while max_cycles is None or cycles < max_cycles:
            try:
                cycle.run()
            except Exception as e:
                logging.exception(f"Unexpected error during poll cycle: {e}")
            cycles += 1
            if max_cycles is None or cycles < max_cycles:
                sleep(interval)
    except KeyboardInterrupt:
        logging.info("Shutting down.")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Poll the closure feed and text subscribers about changes.")
    parser.add_argument('--once', action='store_true', help="Run a single cycle and exit")
    parser.add_argument('--env-file', default=None, help="Path to a .env file")
    args = parser.parse_args(argv)

    config = Config.from_env(args.env_file)
    setup_logging(config)
    cycle = PollCycle.from_config(config)
    if args.once:
        result = cycle.run()
        logging.info(f"Cycle finished: {result.status}")
        return
    run_forever(cycle, config.POLL_INTERVAL)


if __name__ == "__main__":
    main()
