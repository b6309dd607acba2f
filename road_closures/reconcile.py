"""
Snapshot reconciliation.

Compares the closures saved after the previous cycle with the ones just
fetched and reports which appeared and which cleared. Identity is the
alert id alone: an alert whose id survives is unchanged as far as
notifications are concerned, even if its description or mile markers
were edited upstream.

Author: Road Closure Alerts contributors
License: MIT
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .models import Alert


@dataclass(frozen=True)
class Reconciliation:
    added: List[Alert] = field(default_factory=list)
    removed: List[Alert] = field(default_factory=list)
    initial: bool = False  # No previous snapshot existed

    @property
    def changed(self) -> bool:
        return len(self.added) > 0 or len(self.removed) > 0


def _unique_by_id(alerts: Iterable[Alert]) -> List[Alert]:
    seen = set()
    unique = []
    for alert in alerts:
        if alert.id not in seen:
            seen.add(alert.id)
            unique.append(alert)
    return unique


def reconcile(previous: Optional[Iterable[Alert]], current: Iterable[Alert]) -> Reconciliation:
    """Compute the closures added and removed between two snapshots.

    Args:
        previous: The snapshot saved by the last cycle, or None on first run
        current: The freshly fetched (and already filtered) snapshot

    Returns:
        Reconciliation: ``added`` holds alerts of ``current`` whose id is not
        in ``previous``; ``removed`` holds alerts of ``previous`` whose id is
        not in ``current``. With no previous snapshot both are empty and
        ``initial`` is set, since there is nothing to compare against.

    Each list keeps the order of the input it was drawn from, so the
    membership of the result never depends on input ordering. An id
    repeated within one snapshot is reported once.
    """
    if previous is None:
        return Reconciliation(initial=True)
    previous = _unique_by_id(previous)
    current = _unique_by_id(current)

    previous_ids = {alert.id for alert in previous}
    current_ids = {alert.id for alert in current}

    added = [alert for alert in current if alert.id not in previous_ids]
    removed = [alert for alert in previous if alert.id not in current_ids]
    return Reconciliation(added=added, removed=removed)
