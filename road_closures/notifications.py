"""Notification gate: whether a cycle sends anything, and what.

Author: Road Closure Alerts contributors
License: MIT
"""

from typing import List, Sequence

from .formatting import DEFAULT_SOURCE_NAME, format_closure, format_opening
from .models import Alert, FULL_CLOSURE_CODE


def should_notify(added: Sequence[Alert], removed: Sequence[Alert]) -> bool:
    return len(added) > 0 or len(removed) > 0


def build_messages(added: Sequence[Alert], removed: Sequence[Alert],
                   source: str = DEFAULT_SOURCE_NAME,
                   full_code: str = FULL_CLOSURE_CODE) -> List[str]:
    """Build one cycle's notification batch.

    New closures always come first, followed by reopenings, each group in
    the order it was reported.
    """
    messages = [format_closure(alert, source, full_code) for alert in added]
    messages.extend(format_opening(alert) for alert in removed)
    return messages
